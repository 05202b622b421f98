"""Custom exceptions for the exporter.

All exceptions are namespaced under ExportError so callers can catch any
exporter failure with a single except clause. Names avoid shadowing Python
builtins (no bare TimeoutError / ConnectionError subclasses).
"""


class ExportError(Exception):
    """Base exception for all exporter errors."""

    def __init__(self, message: str, strategy: str | None = None) -> None:
        """Initialize export error.

        Args:
            message: Error description
            strategy: Name of the extraction strategy involved, if any
        """
        self.strategy = strategy
        super().__init__(message)


class StrategyInsufficientError(ExportError):
    """Raised when a strategy produced fewer turns than one exchange.

    Non-fatal: the orchestrator catches it and moves to the next strategy.
    """

    def __init__(self, strategy: str, turn_count: int, required: int = 2) -> None:
        """Initialize insufficiency error.

        Args:
            strategy: Name of the strategy that came up short
            turn_count: Number of turns it produced
            required: Minimum number of turns for a usable result
        """
        self.turn_count = turn_count
        self.required = required
        super().__init__(
            f"{strategy} produced {turn_count} turn(s), need {required}",
            strategy,
        )


class CaptureTimeoutError(ExportError):
    """Raised when an intercepted payload never arrived.

    Covers both the export download and clipboard reads.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        timeout_ms: int | None = None,
        strategy: str | None = None,
    ) -> None:
        """Initialize timeout error.

        Args:
            message: Error description
            operation: The operation that timed out
            timeout_ms: The timeout that was exceeded
            strategy: Strategy that was waiting
        """
        self.operation = operation
        self.timeout_ms = timeout_ms
        super().__init__(message, strategy)


class UrlParseError(ExportError):
    """Raised by the strict URL parser on malformed input.

    Canonicalization always catches it and falls back to a naive split.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Cannot parse URL {url!r}: {reason}")


class FocusLostError(ExportError):
    """Raised when the clipboard refuses a read because the page lost focus.

    Recoverable: copy-affordance pauses, prompts the user and retries.
    """


class ClipboardAccessError(ExportError):
    """Raised when the clipboard read is denied for reasons other than focus."""


class PageInteractionError(ExportError):
    """Raised when a query or simulated interaction on the page fails.

    Wraps browser automation errors at the driver boundary.
    """

    def __init__(
        self,
        message: str,
        action: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize interaction error.

        Args:
            message: Error description
            action: The driver action that failed
            cause: Original exception that caused this error
        """
        self.action = action
        self.cause = cause
        if cause:
            self.__cause__ = cause
        super().__init__(message)


class AllStrategiesExhaustedError(ExportError):
    """Raised when no strategy found a usable conversation.

    Terminal: reported to the user as "no content found".
    """

    def __init__(self, attempted: list[str]) -> None:
        self.attempted = attempted
        super().__init__(
            "No conversation content found to export "
            f"(tried: {', '.join(attempted) or 'nothing'})"
        )


class CitationRegistryFrozenError(ExportError):
    """Raised when a new URL is registered after the citation index began."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Citation registry is frozen; cannot add {url!r}")
