"""Push-event body reading and decoding."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable

from pydantic import ValidationError
from starlette.requests import ClientDisconnect

from src.models import ForgeWebhook
from src.webhook.errors import ClientError

logger = logging.getLogger(__name__)


async def read_body(chunks: AsyncIterable[bytes], max_bytes: int) -> bytes:
    """Collect the request body, refusing anything over ``max_bytes``."""
    body = bytearray()
    try:
        async for chunk in chunks:
            body.extend(chunk)
            if len(body) > max_bytes:
                logger.warning("Rejected body larger than %d bytes", max_bytes)
                raise ClientError("Payload too large", status_code=413)
    except (ClientDisconnect, OSError) as e:
        logger.error("Error reading body: %s", e)
        raise ClientError("Bad request") from e
    return bytes(body)


def decode_push_event(body: bytes, verbose: bool = False) -> ForgeWebhook:
    """Parse a Forgejo/Gitea push payload.

    Missing sections decode to empty defaults; a body that is not a JSON
    object of the expected shape raises ClientError.
    """
    if verbose:
        logger.info("Received payload: %s", body.decode("utf-8", errors="replace"))

    try:
        raw = json.loads(body)
        return ForgeWebhook.model_validate(raw)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError, ValidationError) as e:
        logger.error("Error parsing webhook: %s", e)
        raise ClientError("Bad request: invalid JSON") from e
