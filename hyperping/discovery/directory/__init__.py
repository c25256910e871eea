from .directory_client import DirectoryClient as DirectoryClient
from .dns_directory_client import DNSDirectoryClient as DNSDirectoryClient
from .static_directory_client import StaticDirectoryClient as StaticDirectoryClient
