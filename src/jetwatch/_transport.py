"""HTTP transport for the flight API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from jetwatch._constants import USER_AGENT
from jetwatch.config import JetwatchConfig
from jetwatch.exceptions import JetwatchNotFoundError, JetwatchRejectionError, JetwatchTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        payload: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any: ...


def _rejection_from_body(status: int, endpoint: str, body: Any) -> JetwatchRejectionError | None:
    """Map a well-formed ``{error, message}`` error body to a rejection."""
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if not isinstance(message, str) or not message:
        return None
    code = str(body.get("error") or "")
    exc_cls = JetwatchNotFoundError if status == 404 else JetwatchRejectionError
    return exc_cls(message, status_code=status, code=code, endpoint=endpoint)


class HttpTransport:
    """JSON-over-HTTP transport bound to one API base URL."""

    def __init__(self, config: JetwatchConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        payload: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Returns ``None`` for an empty successful body. Raises
        :class:`JetwatchRejectionError` for an error status carrying a
        ``message``, :class:`JetwatchTransportError` otherwise.
        """
        url = f"{self._config.base_url.rstrip('/')}{endpoint}"
        headers = {"accept": "application/json", "user-agent": USER_AGENT}

        _logger.debug("%s %s params=%s", method, url, dict(params or {}))

        try:
            async with self._http.request(
                method,
                url,
                json=dict(payload) if payload is not None else None,
                params=dict(params) if params else None,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise JetwatchTransportError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc
        except TimeoutError as exc:
            raise JetwatchTransportError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc

        body: Any = None
        decode_error: json.JSONDecodeError | None = None
        if text.strip():
            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                decode_error = exc

        if not 200 <= status < 300:
            rejection = _rejection_from_body(status, endpoint, body)
            if rejection is not None:
                _logger.debug("%s %s rejected status=%d code=%s", method, endpoint, status, rejection.code)
                raise rejection
            raise JetwatchTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )

        if decode_error is not None:
            raise JetwatchTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from decode_error

        return body
