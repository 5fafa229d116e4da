"""Admin endpoints (forward-only, no local state)."""

from __future__ import annotations

from jetwatch._api._common import ADMIN_PREFIX
from jetwatch._transport import Transport
from jetwatch.models.flight import CommandResult


async def restart_worker(transport: Transport) -> CommandResult:
    body = await transport.request_json("POST", f"{ADMIN_PREFIX}/restart-worker")
    return CommandResult.model_validate(body if isinstance(body, dict) else {})
