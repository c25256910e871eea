"""
Discovery-specific exceptions.

Only configuration errors are meant to reach the caller synchronously.
Directory and retry errors are caught at the resolve boundary of the
reconciliation cycle and logged there.
"""


class HyperpingError(Exception):
    pass


class DiscoveryConfigError(HyperpingError):
    """
    Raised when discovery settings cannot be parsed or are inconsistent.

    Surfaced before the agent starts polling.
    """

    pass


class DirectoryError(HyperpingError):
    """Raised by a directory client when the peer listing cannot be fetched."""

    def __init__(self, query: str, message: str):
        self.query = query
        super().__init__(f"Directory lookup failed for '{query}': {message}")


class RetryExhaustedError(HyperpingError):
    """Raised when every attempt of a retried operation failed."""

    def __init__(
        self,
        operation_name: str,
        attempts: int,
        delay: float,
        last_error: BaseException | None,
    ):
        self.operation_name = operation_name
        self.attempts = attempts
        self.delay = delay
        self.last_error = last_error

        if last_error is None:
            detail = "no result returned"
        else:
            detail = f"last failure was [{type(last_error).__name__}: {last_error}]"

        super().__init__(
            f"{attempts} attempt(s) with a {delay}s sleep to execute [{operation_name}] failed. {detail}"
        )
