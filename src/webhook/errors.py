"""Per-request error taxonomy for the webhook bridge."""

from __future__ import annotations


class ClientError(Exception):
    """The inbound request is malformed or incomplete (4xx)."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DownstreamError(Exception):
    """The Buildkite API rejected the build or could not be reached.

    ``status_code`` and ``body`` are set when a response came back;
    both are None for transport failures.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message)
