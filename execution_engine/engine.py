"""Execution engine: one allocation decision carried to a single terminal outcome."""

from dataclasses import replace
from threading import Event
from typing import Optional, Tuple
import logging

from core.engine import calculate_allocation
from core.models import AllocationPlan
from execution_adapter.ethereum.adapter import AdapterError, build_execute_payload, leg_for
from execution_adapter.ethereum.addresses import TOKEN_DECIMALS
from execution_adapter.ethereum.aggregator import (
    AggregatorNetworkError,
    AggregatorResponseError,
    ReceiverMismatchError,
    SwapRouteFetcher,
)
from execution_adapter.ethereum.calldata import CalldataFormatError, decode_execute_calldata
from execution_adapter.ethereum.chain import (
    ChainClient,
    ChainRpcError,
    ConfirmationTimeoutError,
    SubmissionUnknownError,
    TransactionSender,
    Web3ChainClient,
)
from execution_adapter.ethereum.contract import ContractDecodeError, DcaContractReader
from execution_adapter.ethereum.models import SwapRoute
from execution_adapter.ethereum.oracle import OracleReadError, PriceOracleReader
from execution_adapter.ethereum.resolver import DebtReadError, VaultDebtReader
from execution_adapter.ethereum.simulator import SimulationError
from execution_controller.controller import (
    CostSafetyGate,
    GasCostExceededError,
    InsufficientGasFundsError,
)
from execution_controller.modes import ExecutionMode, GateDecision
from execution_controller.policy import GasPolicy
from wallet_core.keystore import resolve_key_source
from wallet_core.signer import TransactionSigner

from .config import ExecutorConfig
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

logger = logging.getLogger(__name__)


class ExecutionCancelledError(RuntimeError):
    """Raised when cancellation is observed between stages."""


_BLOCKING_ERRORS = (
    (ReceiverMismatchError, BlockReason.RECEIVER_MISMATCH),
    (GasCostExceededError, BlockReason.GAS_COST_EXCEEDED),
    (InsufficientGasFundsError, BlockReason.INSUFFICIENT_GAS_FUNDS),
    (SimulationError, BlockReason.SIMULATION_FAILED),
)

_TERMINAL_STAGES = {
    ExecutionStatus.EXECUTED: ExecutionStage.CONFIRMED,
    ExecutionStatus.NOT_NEEDED: ExecutionStage.NOT_NEEDED,
    ExecutionStatus.BLOCKED: ExecutionStage.BLOCKED,
    ExecutionStatus.FAILED: ExecutionStage.FAILED,
}

_FAILURE_KINDS = (
    (ExecutionCancelledError, FailureKind.CANCELLED),
    (ConfirmationTimeoutError, FailureKind.CONFIRMATION_TIMEOUT),
    (SubmissionUnknownError, FailureKind.SUBMISSION_UNKNOWN),
    (AggregatorNetworkError, FailureKind.NETWORK_ERROR),
    (AggregatorResponseError, FailureKind.NETWORK_ERROR),
    (CalldataFormatError, FailureKind.DECODE_ERROR),
    (ContractDecodeError, FailureKind.DECODE_ERROR),
    (AdapterError, FailureKind.DECODE_ERROR),
    (OracleReadError, FailureKind.RPC_ERROR),
    (DebtReadError, FailureKind.RPC_ERROR),
    (ChainRpcError, FailureKind.RPC_ERROR),
)


class ExecutionEngine:
    """Sequences reads, allocation, routing, gating and submission.

    Construct a fresh engine per invocation. ``run`` never raises for
    pipeline errors; it returns exactly one ``ExecutionResult``.
    """

    def __init__(
        self,
        config: ExecutorConfig,
        chain: ChainClient,
        route_fetcher: Optional[SwapRouteFetcher],
        signer: Optional[TransactionSender],
        cancel_event: Optional[Event] = None,
    ) -> None:
        self._config = config
        self._chain = chain
        self._fetcher = route_fetcher
        self._signer = signer
        self._cancel_event = cancel_event
        self._contract = DcaContractReader(chain, config.contract_address)
        self._oracle = PriceOracleReader(chain)
        self._debt_reader = VaultDebtReader(
            chain,
            config.vault_resolver,
            config.vault_position_id,
            policy=config.debt_read_failure,
        )
        self._gate = CostSafetyGate(
            chain,
            self._oracle,
            config.native_usd_feed,
            GasPolicy(
                max_cost=config.max_gas_cost,
                gas_limit_margin_bps=config.gas_limit_margin_bps,
            ),
        )
        self._stage = ExecutionStage.IDLE
        self._details = RunDetails()
        self._submitted = False
        self._tx_hash: Optional[str] = None

    @classmethod
    def from_config(
        cls, config: ExecutorConfig, cancel_event: Optional[Event] = None
    ) -> "ExecutionEngine":
        chain = Web3ChainClient.from_rpc_url(
            config.rpc_url.get_secret_value(),
            chain_id=config.chain_id,
            timeout=config.rpc_timeout_seconds,
        )
        api_key = config.aggregator_api_key.get_secret_value() if config.aggregator_api_key else ""
        fetcher = SwapRouteFetcher(
            api_key,
            chain_id=config.chain_id,
            api_base=config.aggregator_api_base,
            timeout=config.aggregator_timeout_seconds,
        )
        private_key = config.private_key.get_secret_value() if config.private_key else None
        signer = TransactionSigner.from_source(
            resolve_key_source(private_key, config.private_key_file)
        )
        return cls(config, chain, fetcher, signer, cancel_event=cancel_event)

    @property
    def stage(self) -> ExecutionStage:
        return self._stage

    @property
    def mode(self) -> ExecutionMode:
        return ExecutionMode.DRY_RUN if self._config.dry_run else ExecutionMode.LIVE

    def check_status(self) -> StatusReport:
        """Read-only eligibility snapshot; raises on RPC failure."""

        return StatusReport(
            can_execute=self._contract.can_execute(),
            snapshot=self._contract.balances(),
            debt=self._debt_reader.read_debt(),
            min_threshold=self._contract.min_threshold(),
        )

    def run(self) -> ExecutionResult:
        if self._stage != ExecutionStage.IDLE:
            raise RuntimeError("ExecutionEngine instances are single-use.")

        logger.info("Starting execution run: %s", self._config.describe())
        try:
            result = self._run()
        except Exception as exc:
            result = self._classify(exc)

        self._stage = _TERMINAL_STAGES[result.status]
        log = logger.info if result.exit_code in (0, 2) else logger.warning
        log("Run finished: %s at %s", result.status.value, result.stage.value)
        return result

    def _run(self) -> ExecutionResult:
        self._enter(ExecutionStage.CHECKING_ELIGIBILITY)
        can_execute = self._contract.can_execute()
        if not can_execute:
            return ExecutionResult.not_needed(
                self._stage, "EURe balance below threshold", self._details
            )
        snapshot = self._contract.balances()
        self._record(snapshot=snapshot)

        self._enter(ExecutionStage.READING_STATE)
        debt = self._debt_reader.read_debt()
        self._record(debt=debt)
        slippage_bps = self._contract.max_slippage_bps()
        eur_usd = stable_usd = None
        if debt.amount > 0:
            eur_usd = self._oracle.latest_price(self._config.eur_usd_feed)
            stable_usd = self._oracle.latest_price(self._config.stable_usd_feed)

        self._enter(ExecutionStage.ALLOCATING)
        plan = calculate_allocation(
            snapshot.source_balance,
            debt.amount,
            eur_usd,
            stable_usd,
            debt_decimals=debt.decimals,
        )
        self._record(allocation=plan)
        logger.info(
            "Allocation: %d to debt leg, %d to collateral leg",
            plan.amount_for_debt_leg,
            plan.amount_for_collateral_leg,
        )
        if plan.total == 0:
            return ExecutionResult.not_needed(self._stage, "No swaps needed", self._details)

        self._enter(ExecutionStage.FETCHING_ROUTES)
        debt_route, collateral_route = self._fetch_routes(plan, slippage_bps)
        self._record(outputs=_leg_outputs(debt_route, collateral_route))

        self._enter(ExecutionStage.BUILDING)
        payload = build_execute_payload(
            self._config.contract_address,
            leg_for(debt_route, self._config.source_token, self._config.debt_token),
            leg_for(collateral_route, self._config.source_token, self._config.collateral_token),
        )
        logger.info("Built execute payload (%d bytes)", len(payload.data))

        self._enter(ExecutionStage.GATING)
        decision = self._gate.evaluate(payload, self._signer.address, self.mode)
        self._record(gas_estimate=decision.estimate)

        self._enter(ExecutionStage.SIMULATING)
        self._gate.simulate(decision, self._signer.address)

        if self.mode == ExecutionMode.DRY_RUN:
            debt_leg, collateral_leg = decode_execute_calldata(payload.data)
            logger.info(
                "Dry run: would send execute() to %s with gas limit %d "
                "(debt leg %d via %s, collateral leg %d via %s)",
                payload.to_address,
                decision.gas_limit,
                debt_leg[1][4],
                debt_leg[0],
                collateral_leg[1][4],
                collateral_leg[0],
            )
            return ExecutionResult.executed(self._details, dry_run=True)

        self._enter(ExecutionStage.SUBMITTING)
        return self._submit(decision)

    def _fetch_routes(
        self, plan: AllocationPlan, slippage_bps: int
    ) -> Tuple[Optional[SwapRoute], Optional[SwapRoute]]:
        contract = self._config.contract_address
        debt_route = None
        collateral_route = None
        if plan.amount_for_debt_leg > 0:
            debt_route = self._fetcher.fetch_route(
                self._config.source_token,
                self._config.debt_token,
                plan.amount_for_debt_leg,
                spender=contract,
                receiver=contract,
                slippage_bps=slippage_bps,
            )
        if plan.amount_for_collateral_leg > 0:
            collateral_route = self._fetcher.fetch_route(
                self._config.source_token,
                self._config.collateral_token,
                plan.amount_for_collateral_leg,
                spender=contract,
                receiver=contract,
                slippage_bps=slippage_bps,
            )
        return debt_route, collateral_route

    def _submit(self, decision: GateDecision) -> ExecutionResult:
        try:
            tx_hash = self._chain.send_transaction(
                self._signer,
                decision.payload.to_address,
                decision.payload.data,
                decision.gas_limit,
            )
        except SubmissionUnknownError as exc:
            # The node may have accepted it; never report this as unsent.
            self._submitted = True
            self._tx_hash = exc.tx_hash
            raise
        self._submitted = True
        self._tx_hash = tx_hash
        logger.info("Transaction sent: %s; waiting for confirmation", tx_hash)

        receipt = self._chain.wait_for_receipt(tx_hash, self._config.receipt_timeout_seconds)
        if not receipt.success:
            return ExecutionResult.failed(
                self._stage,
                FailureKind.TRANSACTION_REVERTED,
                f"Transaction reverted in block {receipt.block_number}",
                self._details,
                tx_hash=tx_hash,
                submitted=True,
            )
        logger.info("Confirmed in block %d, gas used %d", receipt.block_number, receipt.gas_used)
        return ExecutionResult.executed(self._details, tx_hash=tx_hash, gas_used=receipt.gas_used)

    def _enter(self, stage: ExecutionStage) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise ExecutionCancelledError(f"Cancelled before {stage.value}")
        self._stage = stage
        logger.info("Stage: %s", stage.value)

    def _record(self, **values) -> None:
        self._details = replace(self._details, **values)

    def _classify(self, exc: Exception) -> ExecutionResult:
        dry_run = self._config.dry_run
        for error_type, block_reason in _BLOCKING_ERRORS:
            if isinstance(exc, error_type):
                logger.warning("Execution blocked at %s: %s", self._stage.value, exc)
                return ExecutionResult.blocked(
                    self._stage, block_reason, str(exc), self._details, dry_run=dry_run
                )

        kind = FailureKind.UNKNOWN
        for error_type, failure_kind in _FAILURE_KINDS:
            if isinstance(exc, error_type):
                kind = failure_kind
                break

        if kind == FailureKind.UNKNOWN:
            logger.exception("Unexpected error at %s", self._stage.value)
        else:
            logger.error("Execution failed at %s (%s): %s", self._stage.value, kind.value, exc)

        return ExecutionResult.failed(
            self._stage,
            kind,
            str(exc),
            self._details,
            tx_hash=self._tx_hash,
            submitted=self._submitted,
            dry_run=dry_run,
        )


def _leg_outputs(
    debt_route: Optional[SwapRoute], collateral_route: Optional[SwapRoute]
) -> Tuple[LegOutput, ...]:
    outputs = []
    for symbol, route in (("USDC", debt_route), ("WETH", collateral_route)):
        if route is None:
            continue
        outputs.append(
            LegOutput(
                symbol=symbol,
                source_amount=route.source_amount,
                min_dest_amount=route.min_dest_amount,
                expected_dest_amount=route.expected_dest_amount,
                decimals=TOKEN_DECIMALS[symbol],
            )
        )
    return tuple(outputs)
