"""Execution modes and gate decisions."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Tuple

from execution_adapter.ethereum.models import ExecutePayload


class ExecutionMode(Enum):
    DRY_RUN = "DRY_RUN"
    LIVE = "LIVE"


@dataclass(frozen=True)
class GasEstimate:
    gas_units: int
    gas_price_wei: int
    asset_price: int  # native asset / fiat, oracle decimals
    asset_price_decimals: int
    cost_wei: int
    cost_fiat_units: int  # fiat cost, asset_price_decimals, rounded up

    @property
    def total_cost(self) -> Decimal:
        return Decimal(self.cost_fiat_units).scaleb(-self.asset_price_decimals)

    def to_dict(self) -> dict:
        return {
            "gas_units": self.gas_units,
            "gas_price_wei": self.gas_price_wei,
            "asset_price": self.asset_price,
            "cost_wei": self.cost_wei,
            "total_cost": str(self.total_cost),
        }


@dataclass(frozen=True)
class GateDecision:
    """Outcome of a passed gate run; failures raise instead."""

    mode: ExecutionMode
    payload: ExecutePayload
    estimate: GasEstimate
    gas_limit: int
    gates_bypassed: Tuple[str, ...] = ()
