"""Data models for the webhook-to-build pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.models import BuildRequest, ForgeWebhook


@dataclass(frozen=True)
class PreparedBuild:
    """Result of the decode-and-validate phase, ready to be sent downstream."""

    pipeline: str
    branch: str
    short_commit: str
    request: BuildRequest
    webhook: ForgeWebhook


@dataclass
class WebhookResponse:
    """Pipeline response to return to the forge.

    ``data`` is sent as JSON when set, otherwise ``text`` as plain text.
    """

    status_code: int
    text: str = ""
    data: dict[str, Any] | None = None
