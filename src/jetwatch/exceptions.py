"""Custom exception hierarchy for jetwatch."""

from __future__ import annotations


class JetwatchError(Exception):
    """Base exception for all jetwatch errors."""


class JetwatchConfigError(JetwatchError):
    """Invalid or missing configuration."""


class JetwatchTransportError(JetwatchError):
    """Request or channel failure (network, unexpected status, invalid JSON).

    Never surfaced to the operator as a blocking error: the push channel
    reconnects and the poller retries on its next tick.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class JetwatchChannelError(JetwatchTransportError):
    """STOMP handshake failed, an ERROR frame arrived, or the socket closed."""


class JetwatchRejectionError(JetwatchError):
    """Backend answered with a well-formed ``{error, message}`` payload."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class JetwatchNotFoundError(JetwatchRejectionError):
    """The backend does not know the requested flight (HTTP 404)."""


class JetwatchNoHistoryError(JetwatchError):
    """Export requested before any execution history was loaded."""
