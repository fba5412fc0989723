"""Shared test fixtures for forgekite."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from src.audit.logger import AuditLogger
from src.buildkite.client import BuildkiteClient
from src.config import BridgeConfig

TEST_ORG = "acme"
TEST_TOKEN = "bk-secret-token-xyz"
TEST_API_URL = "https://api.buildkite.test"


def make_config(**kwargs: Any) -> BridgeConfig:
    """Factory for BridgeConfig with sensible defaults."""
    defaults: dict[str, Any] = {
        "org_slug": TEST_ORG,
        "api_token": TEST_TOKEN,
        "listen_port": "8080",
        "verbose": False,
        "api_url": TEST_API_URL,
    }
    defaults.update(kwargs)
    return BridgeConfig(**defaults)


def make_push_event(**kwargs: Any) -> dict[str, Any]:
    """Factory for a Forgejo push-event payload."""
    defaults: dict[str, Any] = {
        "ref": "refs/heads/main",
        "before": "0000000000000000000000000000000000000000",
        "repository": {
            "id": 42,
            "name": "my-repo",
            "full_name": "user/my-repo",
        },
        "head_commit": {
            "id": "abc123def456",
            "message": "Fix the thing\n",
            "author": {
                "name": "John Doe",
                "email": "john@example.com",
                "username": "john",
            },
        },
        "pusher": {"username": "john", "id": 7},
    }
    defaults.update(kwargs)
    return defaults


class RecordingBuildkite:
    """httpx MockTransport handler that records every outbound request."""

    def __init__(
        self,
        status_code: int = 201,
        body: str = '{"number": 1}',
        error: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body)

    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def config() -> BridgeConfig:
    return make_config()


@pytest.fixture
def buildkite() -> RecordingBuildkite:
    return RecordingBuildkite()


@pytest.fixture
def client_factory() -> Callable[..., BuildkiteClient]:
    """Build a BuildkiteClient whose transport is a RecordingBuildkite."""

    def _create(config: BridgeConfig, handler: RecordingBuildkite) -> BuildkiteClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return BuildkiteClient(config, http_client=http)

    return _create


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)
