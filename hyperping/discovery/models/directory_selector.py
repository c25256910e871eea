from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class DirectorySelector:
    """
    Query handed to a directory client.

    DNS directories use ``service_name``. Label-based directories use
    ``namespace`` and ``labels`` (a label selector such as ``app=broker``).
    """

    service_name: str | None = None
    namespace: str | None = None
    labels: str | None = None

    def describe(self) -> str:
        if self.service_name:
            return self.service_name

        parts = [part for part in (self.namespace, self.labels) if part]
        return "/".join(parts) if parts else "<all>"
