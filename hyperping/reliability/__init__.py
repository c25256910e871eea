from .retry import RetryConfig as RetryConfig, RetryExecutor as RetryExecutor
