"""Build coordination and offload executors."""

from schema_lens.coordinator.coordinator import DEFAULT_MAX_ROWS, BuildCoordinator, RowBudget
from schema_lens.coordinator.executor import (
    OffloadExecutor,
    PoolOffloadExecutor,
    ProcessOffloadExecutor,
    ThreadOffloadExecutor,
)
from schema_lens.coordinator.messages import BuildRequest, BuildResponse, run_full_build

__all__ = [
    "DEFAULT_MAX_ROWS",
    "BuildCoordinator",
    "RowBudget",
    "OffloadExecutor",
    "PoolOffloadExecutor",
    "ProcessOffloadExecutor",
    "ThreadOffloadExecutor",
    "BuildRequest",
    "BuildResponse",
    "run_full_build",
]
