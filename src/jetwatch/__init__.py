"""jetwatch - Async operations console for a flight tracking backend."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("jetwatch")
except PackageNotFoundError:
    __version__ = "0+local"
from jetwatch.client import FlightConsole
from jetwatch.config import JetwatchConfig
from jetwatch.exceptions import (
    JetwatchChannelError,
    JetwatchConfigError,
    JetwatchError,
    JetwatchNoHistoryError,
    JetwatchNotFoundError,
    JetwatchRejectionError,
    JetwatchTransportError,
)
from jetwatch.models import (
    ActiveFlightSummary,
    CommandResult,
    Flight,
    FlightEvent,
    HistoryExport,
    StartFlightRequest,
    StartJourneyRequest,
    StateTransition,
    WorkflowHistoryEvent,
)
from jetwatch.render import LoggingRenderer, Renderer
from jetwatch.state.events import ActivityLogEntry, ChangeKind, ConnectionState, StoreChange

__all__ = [
    "__version__",
    "ActiveFlightSummary",
    "ActivityLogEntry",
    "ChangeKind",
    "CommandResult",
    "ConnectionState",
    "Flight",
    "FlightConsole",
    "FlightEvent",
    "HistoryExport",
    "JetwatchChannelError",
    "JetwatchConfig",
    "JetwatchConfigError",
    "JetwatchError",
    "JetwatchNoHistoryError",
    "JetwatchNotFoundError",
    "JetwatchRejectionError",
    "JetwatchTransportError",
    "LoggingRenderer",
    "Renderer",
    "StartFlightRequest",
    "StartJourneyRequest",
    "StateTransition",
    "StoreChange",
    "WorkflowHistoryEvent",
]
