"""Tests for the Buildkite create-build client."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable

import httpx
import pytest

from src.buildkite.client import BuildkiteClient
from src.webhook.errors import DownstreamError
from tests.conftest import TEST_TOKEN, RecordingBuildkite, make_config

PAYLOAD = {"commit": "abc123def456", "branch": "main", "message": "m"}


class TestCreateBuild:
    @pytest.mark.asyncio
    async def test_posts_to_pipeline_builds_url(
        self, client_factory: Callable[..., BuildkiteClient],
    ) -> None:
        handler = RecordingBuildkite()
        client = client_factory(make_config(), handler)

        await client.create_build("my-pipeline", PAYLOAD)

        assert len(handler.requests) == 1
        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == (
            "https://api.buildkite.test/v2/organizations/acme/pipelines/my-pipeline/builds"
        )

    @pytest.mark.asyncio
    async def test_sends_bearer_token_and_json(
        self, client_factory: Callable[..., BuildkiteClient],
    ) -> None:
        handler = RecordingBuildkite()
        client = client_factory(make_config(), handler)

        await client.create_build("my-pipeline", PAYLOAD)

        request = handler.requests[0]
        assert request.headers["authorization"] == f"Bearer {TEST_TOKEN}"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == PAYLOAD

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 201])
    async def test_success_statuses_return_body(
        self, status: int, client_factory: Callable[..., BuildkiteClient],
    ) -> None:
        handler = RecordingBuildkite(status_code=status, body='{"number": 9}')
        client = client_factory(make_config(), handler)

        assert await client.create_build("p", PAYLOAD) == '{"number": 9}'

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [202, 301, 401, 404, 422, 500, 503])
    async def test_other_statuses_raise_downstream_error(
        self, status: int, client_factory: Callable[..., BuildkiteClient],
    ) -> None:
        handler = RecordingBuildkite(status_code=status, body='{"message":"nope"}')
        client = client_factory(make_config(), handler)

        with pytest.raises(DownstreamError) as exc_info:
            await client.create_build("p", PAYLOAD)

        err = exc_info.value
        assert err.status_code == status
        assert err.body == '{"message":"nope"}'
        assert str(status) in err.message
        assert '{"message":"nope"}' in err.message
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_connection_error_is_downstream_error(
        self, client_factory: Callable[..., BuildkiteClient],
    ) -> None:
        handler = RecordingBuildkite(error=httpx.ConnectError("connection refused"))
        client = client_factory(make_config(), handler)

        with pytest.raises(DownstreamError) as exc_info:
            await client.create_build("p", PAYLOAD)

        assert exc_info.value.status_code is None
        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_timeout_is_downstream_error(
        self, client_factory: Callable[..., BuildkiteClient],
    ) -> None:
        handler = RecordingBuildkite(error=httpx.ReadTimeout("read timed out"))
        client = client_factory(make_config(), handler)

        with pytest.raises(DownstreamError):
            await client.create_build("p", PAYLOAD)

    @pytest.mark.asyncio
    async def test_time_budget_bounds_slow_upstream(self) -> None:
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(201)

        http = httpx.AsyncClient(transport=httpx.MockTransport(slow))
        client = BuildkiteClient(make_config(timeout_seconds=0.05), http_client=http)

        with pytest.raises(DownstreamError) as exc_info:
            await client.create_build("p", PAYLOAD)
        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_error_never_contains_token(
        self, client_factory: Callable[..., BuildkiteClient],
    ) -> None:
        handler = RecordingBuildkite(status_code=401, body='{"message":"Authentication required"}')
        client = client_factory(make_config(), handler)

        with pytest.raises(DownstreamError) as exc_info:
            await client.create_build("p", PAYLOAD)
        assert TEST_TOKEN not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_verbose_logs_response_body_on_success(
        self,
        client_factory: Callable[..., BuildkiteClient],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO, logger="src.buildkite.client")
        handler = RecordingBuildkite(status_code=201, body='{"number": 7}')
        client = client_factory(make_config(verbose=True), handler)

        await client.create_build("p", PAYLOAD)
        assert 'Buildkite response (201): {"number": 7}' in caplog.text

    @pytest.mark.asyncio
    async def test_verbose_logs_response_body_on_failure(
        self,
        client_factory: Callable[..., BuildkiteClient],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO, logger="src.buildkite.client")
        handler = RecordingBuildkite(status_code=422, body='{"message":"no commit found"}')
        client = client_factory(make_config(verbose=True), handler)

        with pytest.raises(DownstreamError):
            await client.create_build("p", PAYLOAD)
        assert "no commit found" in caplog.text


def test_builds_url_escapes_pipeline_segment() -> None:
    client = BuildkiteClient(make_config(api_url="https://api.buildkite.test/"))
    assert client.builds_url("a b/c") == (
        "https://api.buildkite.test/v2/organizations/acme/pipelines/a%20b%2Fc/builds"
    )
