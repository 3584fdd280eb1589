"""Domain schemas for the allocation core."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BalanceSnapshot:
    """Contract balances read in a single view call."""

    source_balance: int  # EURe, 18 decimals
    secondary_balance: int  # USDC, 6 decimals
    tertiary_balance: int  # ETH, 18 decimals


@dataclass(frozen=True)
class VaultDebt:
    """Outstanding borrow on the lending position."""

    amount: int
    decimals: int = 6
    degraded: bool = False


@dataclass(frozen=True)
class PriceReading:
    answer: int
    decimals: int = 8


@dataclass(frozen=True)
class AllocationPlan:
    """Split of the source balance between the two swap legs."""

    amount_for_debt_leg: int
    amount_for_collateral_leg: int

    @property
    def total(self) -> int:
        return self.amount_for_debt_leg + self.amount_for_collateral_leg

    def to_dict(self) -> dict:
        return {
            "amount_for_debt_leg": str(self.amount_for_debt_leg),
            "amount_for_collateral_leg": str(self.amount_for_collateral_leg),
        }
