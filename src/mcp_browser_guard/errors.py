"""Error taxonomy shared by the retry engine, the façade and the sandbox.

Configuration errors are fatal to the call. Terminal errors are surfaced after
a single attempt. Transient errors are retried per strategy. Retry errors wrap
the last failure once a strategy gives up.
"""

from typing import Optional


class BrowserGuardError(Exception):
    """Base class for every error raised by this package."""


# ============================================================================
# Configuration
# ============================================================================

class ConfigurationError(BrowserGuardError):
    """Invalid strategy or policy configuration. Never retried."""


class StrategyNotFoundError(ConfigurationError):
    def __init__(self, strategy_name: str):
        self.strategy_name = strategy_name
        super().__init__(f"strategy '{strategy_name}' not found")


# ============================================================================
# Terminal (never retried)
# ============================================================================

class TerminalError(BrowserGuardError):
    """A failure that retrying cannot fix."""


class ValidationError(TerminalError):
    """Bad arguments supplied by the caller."""


class AccessDeniedError(ValidationError):
    def __init__(self, path: str, operation: str, reason: str):
        self.path = path
        self.operation = operation
        self.reason = reason
        super().__init__(f"access denied for {operation}: {reason}")


class FileSizeExceededError(ValidationError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"file size {size} bytes exceeds maximum allowed size {limit} bytes")


class PageNotFoundError(TerminalError):
    def __init__(self, page_id: str):
        self.page_id = page_id
        super().__init__(f"page {page_id} not found")


# ============================================================================
# Transient (retried)
# ============================================================================

class TransientError(BrowserGuardError):
    """A driver failure explicitly tagged as recoverable."""


class BrowserNotStartedError(TransientError):
    def __init__(self, message: str = "browser not started"):
        super().__init__(message)


class BrowserUnhealthyError(TransientError):
    def __init__(self, message: str = "browser connection unhealthy"):
        super().__init__(message)


class AttemptTimeoutError(TransientError):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"attempt timed out after {timeout:g}s")


# ============================================================================
# Retry outcomes
# ============================================================================

class RetryError(BrowserGuardError):
    """Raised by the executor when a strategy stops retrying."""

    def __init__(self, operation: str, strategy: str, attempts: int, last_error: Optional[BaseException], message: str):
        self.operation = operation
        self.strategy = strategy
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(message)


class RetryExhaustedError(RetryError):
    def __init__(self, operation: str, strategy: str, attempts: int, last_error: BaseException):
        super().__init__(
            operation,
            strategy,
            attempts,
            last_error,
            f"{operation} failed after {attempts} attempts ({strategy}): {last_error}",
        )


class DeadlineExceededError(RetryError):
    def __init__(self, operation: str, strategy: str, attempts: int, deadline: float,
                 last_error: Optional[BaseException] = None):
        self.deadline = deadline
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(
            operation,
            strategy,
            attempts,
            last_error,
            f"{operation} exceeded its {deadline:g}s deadline after {attempts} attempts ({strategy}){detail}",
        )


__all__ = [
    "BrowserGuardError",
    "ConfigurationError",
    "StrategyNotFoundError",
    "TerminalError",
    "ValidationError",
    "AccessDeniedError",
    "FileSizeExceededError",
    "PageNotFoundError",
    "TransientError",
    "BrowserNotStartedError",
    "BrowserUnhealthyError",
    "AttemptTimeoutError",
    "RetryError",
    "RetryExhaustedError",
    "DeadlineExceededError",
]
