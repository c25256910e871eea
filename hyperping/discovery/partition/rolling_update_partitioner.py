"""
Rolling update partitioning.

During a rolling update old and new replica groups are both listed by the
directory. Restricting the candidates to the local peer's group keeps a
mixed-version deployment from merging into a single membership view. When
the local peer cannot identify its own group the full candidate set is
kept, so a node that cannot self-identify is never isolated.
"""

from dataclasses import dataclass, field
from typing import Sequence

from hyperping.discovery.models.peer_record import PeerRecord


@dataclass(slots=True)
class PartitionResult:
    """Outcome of partitioning one candidate set."""

    members: list[PeerRecord]
    """Candidates eligible for membership."""

    group_key: str | None = None
    """The local group key, when it could be determined."""

    partitioned: bool = False
    """True when candidates were filtered to the local group."""

    warning: str | None = None
    """Why partitioning was skipped, if it was."""

    dropped: list[PeerRecord] = field(default_factory=list)
    """Candidates belonging to other groups."""


class RollingUpdatePartitioner:
    def find_group_key(
        self,
        candidates: Sequence[PeerRecord],
        local_address: str | None,
    ) -> str | None:
        if not local_address:
            return None

        for candidate in candidates:
            if candidate.address == local_address:
                return candidate.group_key

        return None

    def partition(
        self,
        candidates: Sequence[PeerRecord],
        local_address: str | None,
    ) -> PartitionResult:
        if not local_address:
            return PartitionResult(
                members=list(candidates),
                warning=(
                    "Rolling update partitioning is enabled but the local address is unknown. "
                    "All peers will be placed in the same cluster."
                ),
            )

        local_matched = any(
            candidate.address == local_address for candidate in candidates
        )
        group_key = self.find_group_key(candidates, local_address)

        if group_key is None:
            reason = (
                "has no group key"
                if local_matched
                else f"was not found among {len(candidates)} candidate(s)"
            )

            return PartitionResult(
                members=list(candidates),
                warning=(
                    f"Rolling update partitioning is enabled but the local peer {local_address} {reason}. "
                    "All peers will be placed in the same cluster."
                ),
            )

        members: list[PeerRecord] = []
        dropped: list[PeerRecord] = []

        for candidate in candidates:
            if candidate.group_key == group_key:
                members.append(candidate)
            else:
                dropped.append(candidate)

        return PartitionResult(
            members=members,
            group_key=group_key,
            partitioned=True,
            dropped=dropped,
        )
