"""Outcome models for the execution engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from core.engine import format_units
from core.models import AllocationPlan, BalanceSnapshot, VaultDebt
from execution_adapter.ethereum.addresses import EXPLORER_TX_URL
from execution_controller.modes import GasEstimate


class ExecutionStage(Enum):
    IDLE = "IDLE"
    CHECKING_ELIGIBILITY = "CHECKING_ELIGIBILITY"
    READING_STATE = "READING_STATE"
    ALLOCATING = "ALLOCATING"
    FETCHING_ROUTES = "FETCHING_ROUTES"
    BUILDING = "BUILDING"
    GATING = "GATING"
    SIMULATING = "SIMULATING"
    SUBMITTING = "SUBMITTING"
    CONFIRMED = "CONFIRMED"
    NOT_NEEDED = "NOT_NEEDED"
    BLOCKED = "BLOCKED"
    FAILED = "FAILED"


class ExecutionStatus(Enum):
    EXECUTED = "EXECUTED"
    NOT_NEEDED = "NOT_NEEDED"
    BLOCKED = "BLOCKED"
    FAILED = "FAILED"


class BlockReason(Enum):
    RECEIVER_MISMATCH = "RECEIVER_MISMATCH"
    GAS_COST_EXCEEDED = "GAS_COST_EXCEEDED"
    INSUFFICIENT_GAS_FUNDS = "INSUFFICIENT_GAS_FUNDS"
    SIMULATION_FAILED = "SIMULATION_FAILED"


class FailureKind(Enum):
    NETWORK_ERROR = "NETWORK_ERROR"
    RPC_ERROR = "RPC_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    CONFIRMATION_TIMEOUT = "CONFIRMATION_TIMEOUT"
    SUBMISSION_UNKNOWN = "SUBMISSION_UNKNOWN"
    TRANSACTION_REVERTED = "TRANSACTION_REVERTED"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"


_EXIT_CODES = {
    ExecutionStatus.EXECUTED: 0,
    ExecutionStatus.NOT_NEEDED: 2,
    ExecutionStatus.FAILED: 1,
    ExecutionStatus.BLOCKED: 3,
}


@dataclass(frozen=True)
class LegOutput:
    """What one swap leg is expected to deliver."""

    symbol: str
    source_amount: int
    min_dest_amount: int
    expected_dest_amount: int
    decimals: int

    def to_dict(self) -> Dict[str, str]:
        return {
            "symbol": self.symbol,
            "source_amount": str(self.source_amount),
            "min_dest_amount": format_units(self.min_dest_amount, self.decimals),
            "expected_dest_amount": format_units(self.expected_dest_amount, self.decimals),
        }


@dataclass(frozen=True)
class RunDetails:
    """Values gathered along the pipeline, attached to every result."""

    snapshot: Optional[BalanceSnapshot] = None
    debt: Optional[VaultDebt] = None
    allocation: Optional[AllocationPlan] = None
    gas_estimate: Optional[GasEstimate] = None
    outputs: Tuple[LegOutput, ...] = ()


@dataclass(frozen=True)
class ExecutionResult:
    """Single outcome of one invocation; build through the named constructors."""

    status: ExecutionStatus
    stage: ExecutionStage
    details: RunDetails = field(default_factory=RunDetails)
    reason: str = ""
    block_reason: Optional[BlockReason] = None
    failure_kind: Optional[FailureKind] = None
    tx_hash: Optional[str] = None
    gas_used: Optional[int] = None
    dry_run: bool = False
    submitted: bool = False

    @classmethod
    def executed(
        cls,
        details: RunDetails,
        tx_hash: Optional[str] = None,
        gas_used: Optional[int] = None,
        dry_run: bool = False,
    ) -> "ExecutionResult":
        return cls(
            status=ExecutionStatus.EXECUTED,
            stage=ExecutionStage.SIMULATING if dry_run else ExecutionStage.CONFIRMED,
            details=details,
            tx_hash=tx_hash,
            gas_used=gas_used,
            dry_run=dry_run,
            submitted=not dry_run,
        )

    @classmethod
    def not_needed(cls, stage: ExecutionStage, reason: str, details: RunDetails) -> "ExecutionResult":
        return cls(
            status=ExecutionStatus.NOT_NEEDED,
            stage=stage,
            details=details,
            reason=reason,
        )

    @classmethod
    def blocked(
        cls,
        stage: ExecutionStage,
        block_reason: BlockReason,
        reason: str,
        details: RunDetails,
        dry_run: bool = False,
    ) -> "ExecutionResult":
        return cls(
            status=ExecutionStatus.BLOCKED,
            stage=stage,
            details=details,
            reason=reason,
            block_reason=block_reason,
            dry_run=dry_run,
        )

    @classmethod
    def failed(
        cls,
        stage: ExecutionStage,
        failure_kind: FailureKind,
        reason: str,
        details: RunDetails,
        tx_hash: Optional[str] = None,
        submitted: bool = False,
        dry_run: bool = False,
    ) -> "ExecutionResult":
        return cls(
            status=ExecutionStatus.FAILED,
            stage=stage,
            details=details,
            reason=reason,
            failure_kind=failure_kind,
            tx_hash=tx_hash,
            submitted=submitted,
            dry_run=dry_run,
        )

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self.status]

    @property
    def retryable(self) -> bool:
        """Only failures that never reached the chain may be retried blindly."""

        return self.status == ExecutionStatus.FAILED and not self.submitted

    def summary(self) -> str:
        lines = [f"Status: {self.status.value}" + (" (dry run)" if self.dry_run else "")]
        if self.block_reason is not None:
            lines.append(f"Blocked: {self.block_reason.value}")
        if self.failure_kind is not None:
            lines.append(f"Failure: {self.failure_kind.value} at {self.stage.value}")
        if self.reason:
            lines.append(f"Reason: {self.reason}")

        details = self.details
        if details.snapshot is not None:
            lines.append(f"EURe balance: {format_units(details.snapshot.source_balance, 18)}")
        if details.debt is not None:
            debt_text = format_units(details.debt.amount, details.debt.decimals)
            suffix = " (read failed, assumed zero)" if details.debt.degraded else ""
            lines.append(f"Vault debt: {debt_text} USDC{suffix}")
        if details.allocation is not None:
            lines.append(
                "EURe for USDC: "
                f"{format_units(details.allocation.amount_for_debt_leg, 18)}, "
                "EURe for WETH: "
                f"{format_units(details.allocation.amount_for_collateral_leg, 18)}"
            )
        for output in details.outputs:
            lines.append(
                f"{output.symbol} minimum received: "
                f"{format_units(output.min_dest_amount, output.decimals)}"
            )
        if details.gas_estimate is not None:
            lines.append(
                f"Gas: {details.gas_estimate.gas_units} units, "
                f"est. cost ${details.gas_estimate.total_cost:.4f}"
            )
        if self.gas_used is not None:
            lines.append(f"Gas used: {self.gas_used}")
        if self.tx_hash:
            lines.append(f"TX Hash: {self.tx_hash}")
            lines.append(f"Explorer: {EXPLORER_TX_URL}{self.tx_hash}")
        if self.status == ExecutionStatus.FAILED and self.submitted:
            lines.append("Transaction was submitted; check the explorer before retrying.")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, object]:
        details = self.details
        result: Dict[str, object] = {
            "status": self.status.value,
            "stage": self.stage.value,
            "dry_run": self.dry_run,
            "submitted": self.submitted,
            "exit_code": self.exit_code,
        }
        if self.reason:
            result["reason"] = self.reason
        if self.block_reason is not None:
            result["block_reason"] = self.block_reason.value
        if self.failure_kind is not None:
            result["failure_kind"] = self.failure_kind.value
        if self.tx_hash is not None:
            result["tx_hash"] = self.tx_hash
        if self.gas_used is not None:
            result["gas_used"] = self.gas_used
        if details.snapshot is not None:
            result["balances"] = {
                "eure": format_units(details.snapshot.source_balance, 18),
                "usdc": format_units(details.snapshot.secondary_balance, 6),
                "eth": format_units(details.snapshot.tertiary_balance, 18),
            }
        if details.debt is not None:
            result["debt"] = {
                "amount": format_units(details.debt.amount, details.debt.decimals),
                "degraded": details.debt.degraded,
            }
        if details.allocation is not None:
            result["allocation"] = details.allocation.to_dict()
        if details.gas_estimate is not None:
            result["gas_estimate"] = details.gas_estimate.to_dict()
        if details.outputs:
            result["outputs"] = [output.to_dict() for output in details.outputs]
        return result


@dataclass(frozen=True)
class StatusReport:
    can_execute: bool
    snapshot: BalanceSnapshot
    debt: VaultDebt
    min_threshold: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "can_execute": self.can_execute,
            "eure_balance": format_units(self.snapshot.source_balance, 18),
            "usdc_balance": format_units(self.snapshot.secondary_balance, 6),
            "eth_balance": format_units(self.snapshot.tertiary_balance, 18),
            "vault_debt": format_units(self.debt.amount, self.debt.decimals),
            "debt_read_degraded": self.debt.degraded,
            "min_threshold": format_units(self.min_threshold, 18),
        }
