"""
Tests for RollingUpdatePartitioner.
"""

from hyperping.discovery import PeerRecord, RollingUpdatePartitioner


CANDIDATES = [
    PeerRecord(address="10.0.0.1", port=61616, group_key="G1"),
    PeerRecord(address="10.0.0.2", port=61616, group_key="G1"),
    PeerRecord(address="10.0.0.3", port=61616, group_key="G2"),
]


class TestRollingUpdatePartitioner:
    """Test group selection and fail-open behavior."""

    def test_partitions_to_local_group(self):
        result = RollingUpdatePartitioner().partition(CANDIDATES, "10.0.0.1")

        assert {member.address for member in result.members} == {"10.0.0.1", "10.0.0.2"}
        assert [member.address for member in result.dropped] == ["10.0.0.3"]
        assert result.group_key == "G1"
        assert result.partitioned is True
        assert result.warning is None

    def test_unmatched_local_address_keeps_everyone(self):
        result = RollingUpdatePartitioner().partition(CANDIDATES, "10.0.0.99")

        assert len(result.members) == 3
        assert result.partitioned is False
        assert "10.0.0.99" in result.warning

    def test_unknown_local_address_keeps_everyone(self):
        result = RollingUpdatePartitioner().partition(CANDIDATES, None)

        assert len(result.members) == 3
        assert result.warning is not None

    def test_local_peer_without_group_keeps_everyone(self):
        candidates = [PeerRecord(address="10.0.0.9", port=61616), *CANDIDATES]

        result = RollingUpdatePartitioner().partition(candidates, "10.0.0.9")

        assert len(result.members) == 4
        assert "no group key" in result.warning

    def test_find_group_key(self):
        partitioner = RollingUpdatePartitioner()

        assert partitioner.find_group_key(CANDIDATES, "10.0.0.3") == "G2"
        assert partitioner.find_group_key(CANDIDATES, "10.0.0.4") is None
