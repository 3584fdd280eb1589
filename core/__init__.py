from .engine import calculate_allocation, debt_in_source_units, format_units
from .models import AllocationPlan, BalanceSnapshot, PriceReading, VaultDebt

__all__ = [
    "AllocationPlan",
    "BalanceSnapshot",
    "PriceReading",
    "VaultDebt",
    "calculate_allocation",
    "debt_in_source_units",
    "format_units",
]
