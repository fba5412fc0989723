"""Webhook relay pipeline: Forgejo push event in, Buildkite build out.

Pipeline stages:
1. Method check (POST only)
2. Resolve pipeline identifier from the path
3. Read and decode the push payload
4. Normalize branch/commit and build the outbound request
5. Trigger the build (single attempt)
6. Map the outcome to a response and audit log it

Stages 2-4 form the decode-and-validate phase (``prepare``); stage 5 is
the call phase (``trigger``). Each request is independent: identical
deliveries trigger identical, separate builds.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable
from typing import TYPE_CHECKING

from src.models import AuditEvent, AuditEventType
from src.webhook.decoder import decode_push_event, read_body
from src.webhook.errors import ClientError, DownstreamError
from src.webhook.models import PreparedBuild, WebhookResponse
from src.webhook.normalize import branch_from_ref, build_request, short_commit
from src.webhook.paths import resolve_pipeline

if TYPE_CHECKING:
    from src.audit.logger import AuditLogger
    from src.buildkite.client import BuildkiteClient
    from src.config import BridgeConfig

logger = logging.getLogger(__name__)


class BuildTriggerPipeline:
    """Turns one inbound webhook delivery into one Buildkite build."""

    def __init__(
        self,
        config: BridgeConfig,
        client: BuildkiteClient,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self._audit = audit_logger

    async def handle(
        self,
        method: str,
        path: str,
        body: AsyncIterable[bytes],
        source_ip: str | None = None,
    ) -> WebhookResponse:
        """Run the full pipeline for a request to the webhook route."""
        if method != "POST":
            return WebhookResponse(status_code=405, text="Method not allowed")

        try:
            prepared = await self.prepare(path, body)
        except ClientError as e:
            logger.warning("Rejected webhook %s (%d): %s", path, e.status_code, e.message)
            self._log_audit(AuditEvent(
                event_type=AuditEventType.REQUEST_REJECTED,
                source_ip=source_ip,
                result="rejected",
                status_code=e.status_code,
                details={"path": path, "reason": e.message},
            ))
            return WebhookResponse(status_code=e.status_code, text=e.message)

        try:
            await self.trigger(prepared)
        except DownstreamError as e:
            logger.error(
                "Failed to trigger build: %s/%s (branch: %s, commit: %s): %s",
                self._config.org_slug, prepared.pipeline,
                prepared.branch, prepared.short_commit, e.message,
            )
            self._log_audit(AuditEvent(
                event_type=AuditEventType.BUILD_FAILED,
                source_ip=source_ip,
                pipeline=prepared.pipeline,
                result="failure",
                status_code=500,
                details={
                    **self._build_details(prepared),
                    "downstream_status": e.status_code,
                    "error": e.message,
                },
            ))
            return WebhookResponse(
                status_code=500,
                text=f"Failed to trigger build: {e.message}",
            )

        self._log_audit(AuditEvent(
            event_type=AuditEventType.BUILD_TRIGGERED,
            source_ip=source_ip,
            pipeline=prepared.pipeline,
            result="success",
            status_code=200,
            details=self._build_details(prepared),
        ))
        return WebhookResponse(
            status_code=200,
            data={
                "status": "success",
                "message": "Build triggered successfully",
                "pipeline": prepared.pipeline,
                "branch": prepared.branch,
                "commit": prepared.short_commit,
            },
        )

    async def prepare(self, path: str, body: AsyncIterable[bytes]) -> PreparedBuild:
        """Decode-and-validate phase. Raises ClientError; never calls Buildkite."""
        pipeline = resolve_pipeline(path)
        raw = await read_body(body, self._config.max_body_bytes)
        webhook = decode_push_event(raw, verbose=self._config.verbose)

        branch = branch_from_ref(webhook.ref)
        commit_short = short_commit(webhook.head_commit.id)
        logger.info(
            "Webhook: repo=%s, branch=%s, commit=%s, author=%s",
            webhook.repository.full_name, branch, commit_short, webhook.pusher.username,
        )
        return PreparedBuild(
            pipeline=pipeline,
            branch=branch,
            short_commit=commit_short,
            request=build_request(webhook, branch),
            webhook=webhook,
        )

    async def trigger(self, prepared: PreparedBuild) -> None:
        """Call phase: exactly one create-build attempt. Raises DownstreamError."""
        payload = prepared.request.to_payload()
        if self._config.verbose:
            logger.info(
                "Debug: org=%r, pipeline=%r", self._config.org_slug, prepared.pipeline,
            )
            logger.info("Debug: URL=%s", self._client.builds_url(prepared.pipeline))
            logger.info("Buildkite payload: %s", json.dumps(payload))

        await self._client.create_build(prepared.pipeline, payload)
        logger.info(
            "Build triggered: %s/%s (branch: %s, commit: %s)",
            self._config.org_slug, prepared.pipeline,
            prepared.branch, prepared.short_commit,
        )

    def _build_details(self, prepared: PreparedBuild) -> dict[str, object]:
        return {
            "org": self._config.org_slug,
            "branch": prepared.branch,
            "commit": prepared.request.commit,
            "repository": prepared.webhook.repository.full_name,
            "pusher": prepared.webhook.pusher.username,
        }

    def _log_audit(self, event: AuditEvent) -> None:
        if not self._audit:
            return
        # The build may already exist; a failed audit write must not change the response.
        try:
            self._audit.log(event)
        except OSError:
            logger.exception("Failed to write audit event %s", event.event_type.value)
