"""Pipeline identifier extraction from the webhook route."""

from __future__ import annotations

from src.webhook.errors import ClientError

WEBHOOK_ROUTE = "/webhook"
WEBHOOK_PREFIX = WEBHOOK_ROUTE + "/"


def resolve_pipeline(path: str) -> str:
    """Return the pipeline identifier from ``/webhook/<pipeline>``.

    Trailing slashes are ignored. Raises ClientError when no identifier
    follows the route.
    """
    remainder = ""
    if path.startswith(WEBHOOK_PREFIX):
        remainder = path[len(WEBHOOK_PREFIX):]
    pipeline = remainder.rstrip("/")
    if not pipeline:
        raise ClientError(
            f"pipeline identifier required: POST {WEBHOOK_PREFIX}<pipeline-identifier>",
        )
    return pipeline
