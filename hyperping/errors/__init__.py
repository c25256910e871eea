from .discovery import (
    DirectoryError as DirectoryError,
    DiscoveryConfigError as DiscoveryConfigError,
    HyperpingError as HyperpingError,
    RetryExhaustedError as RetryExhaustedError,
)
