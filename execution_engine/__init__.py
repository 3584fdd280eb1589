from .config import ConfigError, ExecutorConfig, load_config
from .engine import ExecutionCancelledError, ExecutionEngine
from .models import (
    BlockReason,
    ExecutionResult,
    ExecutionStage,
    ExecutionStatus,
    FailureKind,
    LegOutput,
    RunDetails,
    StatusReport,
)

__all__ = [
    "BlockReason",
    "ConfigError",
    "ExecutionCancelledError",
    "ExecutionEngine",
    "ExecutionResult",
    "ExecutionStage",
    "ExecutionStatus",
    "ExecutorConfig",
    "FailureKind",
    "LegOutput",
    "RunDetails",
    "StatusReport",
    "load_config",
]
