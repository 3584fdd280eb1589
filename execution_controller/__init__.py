from .controller import CostSafetyGate, GasCostExceededError, InsufficientGasFundsError
from .modes import ExecutionMode, GasEstimate, GateDecision
from .policy import GasPolicy

__all__ = [
    "CostSafetyGate",
    "ExecutionMode",
    "GasCostExceededError",
    "GasEstimate",
    "GasPolicy",
    "GateDecision",
    "InsufficientGasFundsError",
]
