from .rolling_update_partitioner import (
    PartitionResult as PartitionResult,
    RollingUpdatePartitioner as RollingUpdatePartitioner,
)
