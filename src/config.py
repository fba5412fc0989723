"""Bridge configuration loaded once at startup from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

VERSION = "1.0.0"

DEFAULT_API_URL = "https://api.buildkite.com"
DEFAULT_PORT = "8080"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_BODY_BYTES = 512 * 1024

TOKEN_HELP_URL = "https://buildkite.com/user/api-access-tokens"


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""


class BridgeConfig(BaseModel):
    """Process-wide settings, immutable after startup."""

    model_config = ConfigDict(frozen=True)

    org_slug: str = Field(min_length=1)
    api_token: str = Field(min_length=1, repr=False)
    listen_port: str = DEFAULT_PORT
    verbose: bool = False
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    max_body_bytes: int = Field(default=DEFAULT_MAX_BODY_BYTES, gt=0)
    audit_log_path: str | None = None

    def describe(self) -> dict[str, object]:
        """Settings safe to print or log: the token is redacted."""
        data = self.model_dump()
        data["api_token"] = "***"
        return data


def is_valid_port(port: str) -> bool:
    return port.isdigit() and 1 <= int(port) <= 65535


def _get(env: Mapping[str, str], key: str, fallback: str = "") -> str:
    value = env.get(key, "").strip()
    return value or fallback


def _parse_number(env: Mapping[str, str], key: str, default: float, cast: type) -> float:
    raw = _get(env, key)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return value


def load_config(
    env: Mapping[str, str] | None = None,
    env_file: str | None = ".env",
) -> BridgeConfig:
    """Build a BridgeConfig from environment variables.

    When ``env`` is omitted the process environment is used, after loading
    ``env_file`` (if it exists) without overriding variables already set.
    """
    if env is None:
        if env_file:
            load_dotenv(env_file, override=False)
        env = os.environ

    org = _get(env, "BUILDKITE_ORG")
    token = _get(env, "BUILDKITE_TOKEN")
    if not org or not token:
        raise ConfigError(
            "BUILDKITE_ORG and BUILDKITE_TOKEN environment variables must be set. "
            f"Get a token from {TOKEN_HELP_URL} (requires write_builds scope)"
        )

    port = _get(env, "WEBHOOK_PORT", DEFAULT_PORT)
    if not is_valid_port(port):
        raise ConfigError(f"WEBHOOK_PORT must be a port number (1-65535), got {port!r}")

    return BridgeConfig(
        org_slug=org,
        api_token=token,
        listen_port=port,
        verbose=_get(env, "LOG_VERBOSE", "false") == "true",
        api_url=_get(env, "BUILDKITE_API_URL", DEFAULT_API_URL),
        timeout_seconds=_parse_number(
            env, "WEBHOOK_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, float,
        ),
        max_body_bytes=int(_parse_number(
            env, "WEBHOOK_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES, int,
        )),
        audit_log_path=_get(env, "AUDIT_LOG_PATH") or None,
    )
