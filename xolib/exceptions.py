"""
Custom exceptions for the XO backup orchestrator.
"""

from typing import Any, Optional


class XOError(Exception):
    """Base class for all orchestrator errors."""


class TransientError(XOError):
    """
    Error that might be resolved by retrying.
    Examples: Network timeouts, 503 Service Unavailable, object not yet visible.
    """


class FatalError(XOError):
    """
    Error that cannot be resolved by retrying.
    Examples: Invalid configuration, remote rejected the request.
    """


class ConfigurationError(FatalError):
    """Invalid configuration or arguments."""


class ValidationError(ConfigurationError):
    """Input validation failure."""


class SecurityValidationError(ValidationError):
    """Input rejected because it looks unsafe (path traversal, shell metacharacters)."""


class RPCError(FatalError):
    """The remote API rejected a JSON-RPC call."""

    def __init__(self, method: str, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(f"{method} failed: {message}" + (f" (code {code})" if code is not None else ""))
        self.method = method
        self.code = code
        self.data = data


class LookupCardinalityError(FatalError):
    """A lookup returned an unexpected number of objects."""


class NotFoundError(LookupCardinalityError):
    """
    No object matched the lookup.

    The waiter treats this as retryable: a freshly created object may not be
    visible to a subsequent read yet.
    """


class AmbiguousMatchError(LookupCardinalityError):
    """More than one object matched a lookup that expects exactly one."""


class WaitError(XOError):
    """Base class for errors raised by the state-change waiter."""

    def __init__(self, message: str, description: str = "", elapsed: float = 0.0):
        super().__init__(message)
        self.description = description
        self.elapsed = elapsed


class WaitTimeoutError(WaitError):
    """The target condition was not observed before the timeout."""

    def __init__(self, message: str, description: str = "", elapsed: float = 0.0, last_value: Any = None):
        super().__init__(message, description, elapsed)
        self.last_value = last_value


class WaitFailedError(WaitError):
    """
    The wait aborted early.

    Either the observed value is a designated failure state (``state`` is set)
    or refreshing kept failing past the retry budget (``__cause__`` is set).
    """

    def __init__(self, message: str, description: str = "", elapsed: float = 0.0, state: Any = None):
        super().__init__(message, description, elapsed)
        self.state = state


class WaitCancelledError(WaitError):
    """The wait was cancelled by the caller."""
