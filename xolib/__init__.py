"""
Library package for the XO backup orchestrator.
"""

# Import version from lightweight module (avoids importing heavy deps at build time)
from ._version import __version__, __version_date__

from .config import ClientConfig
from .exceptions import (
    AmbiguousMatchError,
    ConfigurationError,
    FatalError,
    NotFoundError,
    RPCError,
    TransientError,
    ValidationError,
    WaitCancelledError,
    WaitError,
    WaitFailedError,
    WaitTimeoutError,
    XOError,
)
from .lookup import MatchStrategy, ObjectLookup
from .models import PowerState, VmBackup
from .rpc_client import XOClient
from .utils import format_duration, setup_logging
from .waiter import Outcome, WaitConfig, wait_for_state

__all__ = [
    "__version__",
    "__version_date__",
    "ClientConfig",
    "XOClient",
    "ObjectLookup",
    "MatchStrategy",
    "PowerState",
    "VmBackup",
    "Outcome",
    "WaitConfig",
    "wait_for_state",
    "XOError",
    "TransientError",
    "FatalError",
    "ConfigurationError",
    "ValidationError",
    "RPCError",
    "NotFoundError",
    "AmbiguousMatchError",
    "WaitError",
    "WaitTimeoutError",
    "WaitFailedError",
    "WaitCancelledError",
    "setup_logging",
    "format_duration",
]
