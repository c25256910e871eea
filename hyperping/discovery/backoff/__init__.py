from .backoff_scheduler import (
    BackoffPolicy as BackoffPolicy,
    BackoffScheduler as BackoffScheduler,
    FailureOutcome as FailureOutcome,
)
