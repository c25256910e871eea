from .resolver import (
    AsyncDNSResolver as AsyncDNSResolver,
    DNSError as DNSError,
    DNSResult as DNSResult,
    SRVRecord as SRVRecord,
)
