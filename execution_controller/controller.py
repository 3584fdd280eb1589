"""Cost and safety gate in front of transaction submission."""

from typing import Optional
import logging

from execution_adapter.ethereum.chain import MAX_FEE_BASE_MULTIPLIER, CallRevertedError, ChainClient
from execution_adapter.ethereum.models import ExecutePayload
from execution_adapter.ethereum.oracle import PriceOracleReader
from execution_adapter.ethereum.simulator import SimulationError, simulate

from .modes import ExecutionMode, GasEstimate, GateDecision
from .policy import GasPolicy

logger = logging.getLogger(__name__)

_WEI_PER_ETHER = 10**18


class GasCostExceededError(RuntimeError):
    """Raised when the estimated fiat gas cost is above the ceiling."""

    def __init__(self, estimated, ceiling) -> None:
        super().__init__(f"Gas cost {estimated} exceeds limit {ceiling}")
        self.estimated = estimated
        self.ceiling = ceiling


class InsufficientGasFundsError(RuntimeError):
    """Raised when the signing account cannot pay for gas."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Insufficient native balance for gas: need {required} wei, have {available} wei"
        )
        self.required = required
        self.available = available


class CostSafetyGate:
    """Runs every pre-submission check; any failure raises and nothing is sent."""

    def __init__(
        self,
        chain: ChainClient,
        oracle: PriceOracleReader,
        native_price_feed: str,
        policy: Optional[GasPolicy] = None,
    ) -> None:
        self._chain = chain
        self._oracle = oracle
        self._native_price_feed = native_price_feed
        self._policy = policy or GasPolicy()

    @property
    def policy(self) -> GasPolicy:
        return self._policy

    def estimate(self, payload: ExecutePayload, sender: str) -> GasEstimate:
        try:
            gas_units = self._chain.estimate_gas(payload.to_address, payload.data, sender)
        except CallRevertedError as exc:
            raise SimulationError(f"gas estimation reverted: {exc}") from exc
        gas_price = self._chain.gas_price()
        price = self._oracle.latest_price(self._native_price_feed)

        cost_wei = gas_units * gas_price
        cost_fiat_units = -(-cost_wei * price.answer // _WEI_PER_ETHER)
        estimate = GasEstimate(
            gas_units=gas_units,
            gas_price_wei=gas_price,
            asset_price=price.answer,
            asset_price_decimals=price.decimals,
            cost_wei=cost_wei,
            cost_fiat_units=cost_fiat_units,
        )
        logger.info(
            "Gas estimate: %d units at %d wei, native price %s, cost %s (max %s)",
            gas_units,
            gas_price,
            price.answer,
            estimate.total_cost,
            self._policy.max_cost,
        )
        return estimate

    def check_cost(self, estimate: GasEstimate) -> None:
        if self._policy.exceeds_ceiling(estimate.cost_fiat_units, estimate.asset_price_decimals):
            raise GasCostExceededError(estimate.total_cost, self._policy.max_cost)

    def check_funds(self, estimate: GasEstimate, sender: str) -> None:
        available = self._chain.get_balance(sender)
        if available < estimate.cost_wei:
            raise InsufficientGasFundsError(required=estimate.cost_wei, available=available)
        worst_case = self.worst_case_cost_wei(estimate)
        if available < worst_case:
            logger.warning(
                "Balance %d wei covers the estimate (%d wei) but not the worst case "
                "%d wei at full gas limit and max fee; the node may reject the send",
                available,
                estimate.cost_wei,
                worst_case,
            )

    def worst_case_cost_wei(self, estimate: GasEstimate) -> int:
        """Bound on what the node reserves: gas limit at twice the current gas price."""

        gas_limit = self._policy.gas_limit(estimate.gas_units)
        return gas_limit * estimate.gas_price_wei * MAX_FEE_BASE_MULTIPLIER

    def evaluate(self, payload: ExecutePayload, sender: str, mode: ExecutionMode) -> GateDecision:
        """Estimate, then apply the cost and funds gates in LIVE mode."""

        estimate = self.estimate(payload, sender)

        bypassed = ()
        if mode == ExecutionMode.LIVE:
            self.check_cost(estimate)
            self.check_funds(estimate, sender)
        else:
            bypassed = ("gas_cost_ceiling", "gas_funds")
            logger.info("Dry run: cost ceiling and wallet balance gates not enforced.")

        return GateDecision(
            mode=mode,
            payload=payload,
            estimate=estimate,
            gas_limit=self._policy.gas_limit(estimate.gas_units),
            gates_bypassed=bypassed,
        )

    def simulate(self, decision: GateDecision, sender: str) -> None:
        simulate(self._chain, decision.payload, sender)
