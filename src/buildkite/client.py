"""Buildkite REST client — one create-build call per webhook, no retries."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from src.config import BridgeConfig
from src.webhook.errors import DownstreamError

logger = logging.getLogger(__name__)

_SUCCESS_STATUSES = (200, 201)


class BuildkiteClient:
    """Creates builds through the Buildkite v2 API.

    The underlying ``httpx.AsyncClient`` is shared by all requests and pools
    connections; pass one in to control transport (tests use MockTransport).
    """

    def __init__(
        self,
        config: BridgeConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._http = http_client or httpx.AsyncClient(verify=True)

    def builds_url(self, pipeline: str) -> str:
        return (
            f"{self._config.api_url.rstrip('/')}/v2/organizations/"
            f"{quote(self._config.org_slug, safe='')}/pipelines/"
            f"{quote(pipeline, safe='')}/builds"
        )

    async def create_build(self, pipeline: str, payload: dict[str, Any]) -> str:
        """POST a build and return the raw response body.

        Raises DownstreamError for any status other than 200/201 and for
        transport failures, including exceeding the configured time budget.
        """
        url = self.builds_url(pipeline)
        headers = {
            "Authorization": f"Bearer {self._config.api_token}",
            "Content-Type": "application/json",
        }
        budget = self._config.timeout_seconds

        try:
            resp = await asyncio.wait_for(
                self._http.post(url, json=payload, headers=headers, timeout=budget),
                timeout=budget,
            )
        except TimeoutError as e:
            raise DownstreamError(f"request failed: timed out after {budget:g}s") from e
        except httpx.HTTPError as e:
            raise DownstreamError(f"request failed: {e!r}") from e

        body = resp.text
        if self._config.verbose:
            logger.info("Buildkite response (%d): %s", resp.status_code, body)

        if resp.status_code not in _SUCCESS_STATUSES:
            raise DownstreamError(
                f"buildkite API returned {resp.status_code}: {body}",
                status_code=resp.status_code,
                body=body,
            )
        return body

    async def aclose(self) -> None:
        await self._http.aclose()
