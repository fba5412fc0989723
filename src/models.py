"""Shared Pydantic data models for forgekite."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# --- Inbound (Forgejo / Gitea push event) ---


class _ForgeModel(BaseModel):
    """Base for webhook sections: unknown keys ignored, nulls treated as absent."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ForgeAuthor(_ForgeModel):
    name: str = ""
    email: str = ""
    username: str = ""


class ForgeCommit(_ForgeModel):
    id: str = ""
    message: str = ""
    author: ForgeAuthor = Field(default_factory=ForgeAuthor)


class ForgeRepository(_ForgeModel):
    name: str = ""
    full_name: str = ""


class ForgePusher(_ForgeModel):
    username: str = ""


class ForgeWebhook(_ForgeModel):
    ref: str = ""
    repository: ForgeRepository = Field(default_factory=ForgeRepository)
    head_commit: ForgeCommit = Field(default_factory=ForgeCommit)
    pusher: ForgePusher = Field(default_factory=ForgePusher)


# --- Outbound (Buildkite create-build request) ---


class BuildAuthor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str


class BuildRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    commit: str
    branch: str
    message: str
    author: BuildAuthor | None = None
    env: dict[str, str] | None = None

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the Buildkite API, optional members omitted when unset."""
        return self.model_dump(exclude_none=True)


# --- Audit Models ---


class AuditEventType(str, Enum):
    BUILD_TRIGGERED = "build_triggered"
    BUILD_FAILED = "build_failed"
    REQUEST_REJECTED = "request_rejected"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    source_ip: str | None = None
    pipeline: str | None = None
    result: str  # "success" | "failure" | "rejected"
    status_code: int
    details: dict[str, object] | None = None
