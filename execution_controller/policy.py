"""Cost policy for recurring maintenance transactions."""

from dataclasses import dataclass
from decimal import Decimal

DEFAULT_MAX_GAS_COST = Decimal("0.50")
DEFAULT_GAS_LIMIT_MARGIN_BPS = 2_000


@dataclass(frozen=True)
class GasPolicy:
    max_cost: Decimal = DEFAULT_MAX_GAS_COST
    gas_limit_margin_bps: int = DEFAULT_GAS_LIMIT_MARGIN_BPS

    def __post_init__(self) -> None:
        if self.max_cost < 0:
            raise ValueError("max_cost must be non-negative.")
        if self.gas_limit_margin_bps < 0:
            raise ValueError("gas_limit_margin_bps must be non-negative.")

    def ceiling_units(self, decimals: int) -> int:
        """Ceiling expressed in fiat base units of the price feed."""

        return int(self.max_cost.scaleb(decimals))

    def exceeds_ceiling(self, cost_fiat_units: int, decimals: int) -> bool:
        return cost_fiat_units > self.ceiling_units(decimals)

    def gas_limit(self, gas_units: int) -> int:
        return gas_units * (10_000 + self.gas_limit_margin_bps) // 10_000
