from .reconciliation_cycle import (
    CycleResult as CycleResult,
    ReconciliationCycle as ReconciliationCycle,
)
