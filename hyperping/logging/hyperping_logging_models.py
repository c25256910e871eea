from .models import Entry, LogLevel


class DiscoveryTrace(Entry, kw_only=True):
    service: str
    level: LogLevel = LogLevel.TRACE

class DiscoveryDebug(Entry, kw_only=True):
    service: str
    level: LogLevel = LogLevel.DEBUG

class DiscoveryInfo(Entry, kw_only=True):
    service: str
    level: LogLevel = LogLevel.INFO

class DiscoveryWarning(Entry, kw_only=True):
    service: str
    level: LogLevel = LogLevel.WARN

class DiscoveryError(Entry, kw_only=True):
    service: str
    level: LogLevel = LogLevel.ERROR

class RetryDebug(Entry, kw_only=True):
    operation: str
    attempt: int
    attempts: int
    level: LogLevel = LogLevel.DEBUG

class RetryInfo(Entry, kw_only=True):
    operation: str
    attempt: int
    attempts: int
    level: LogLevel = LogLevel.INFO
