"""View calls against the DCA contract that owns the funds."""

from typing import List

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from core.models import BalanceSnapshot

from .calldata import selector
from .chain import ChainClient


class ContractDecodeError(ValueError):
    """Raised when a view call returns data that does not match its ABI."""


_CAN_EXECUTE = selector("canExecute()")
_GET_BALANCES = selector("getBalances()")
_MAX_SLIPPAGE_BPS = selector("maxSlippageBps()")
_MIN_THRESHOLD = selector("minEureThreshold()")


class DcaContractReader:
    def __init__(self, chain: ChainClient, contract_address: str) -> None:
        self._chain = chain
        self._address = contract_address

    @property
    def address(self) -> str:
        return self._address

    def can_execute(self) -> bool:
        (flag,) = self._view(_CAN_EXECUTE, ["bool"], "canExecute")
        return bool(flag)

    def balances(self) -> BalanceSnapshot:
        source, secondary, tertiary = self._view(
            _GET_BALANCES, ["uint256", "uint256", "uint256"], "getBalances"
        )
        return BalanceSnapshot(
            source_balance=source,
            secondary_balance=secondary,
            tertiary_balance=tertiary,
        )

    def max_slippage_bps(self) -> int:
        (value,) = self._view(_MAX_SLIPPAGE_BPS, ["uint256"], "maxSlippageBps")
        if value > 10_000:
            raise ContractDecodeError(f"maxSlippageBps out of range: {value}")
        return value

    def min_threshold(self) -> int:
        (value,) = self._view(_MIN_THRESHOLD, ["uint256"], "minEureThreshold")
        return value

    def _view(self, function_selector: bytes, types: List[str], name: str) -> tuple:
        raw = self._chain.call(self._address, function_selector)
        try:
            return decode(types, raw)
        except (DecodingError, ValueError, OverflowError) as exc:
            raise ContractDecodeError(f"{name}() returned malformed data.") from exc
