"""Vault debt reads from the lending resolver via raw call and fixed-word decoding.

The resolver returns a large position struct. Only the borrow amount is needed,
so the response is read as a sequence of 32-byte words and one word is picked
according to a named schema instead of decoding the full ABI.
"""

from dataclasses import dataclass
from enum import Enum
import logging

from eth_abi import encode

from core.models import VaultDebt

from .calldata import selector
from .chain import ChainClient, ChainRpcError

logger = logging.getLogger(__name__)


class DebtDecodeError(ValueError):
    """Raised when a resolver response is shorter than its schema requires."""


class DebtReadError(RuntimeError):
    """Raised when the debt read fails and the policy forbids degrading."""


class DebtReadPolicy(Enum):
    ASSUME_ZERO = "assume_zero"
    ABORT = "abort"


@dataclass(frozen=True)
class ResolverWordSchema:
    """Where the borrow amount sits inside the resolver response."""

    name: str
    function_signature: str
    word_index: int
    word_size: int = 32
    decimals: int = 6

    @property
    def byte_offset(self) -> int:
        return self.word_index * self.word_size

    def extract(self, raw: bytes) -> int:
        end = self.byte_offset + self.word_size
        if len(raw) < end:
            raise DebtDecodeError(
                f"{self.name}: response has {len(raw)} bytes, need at least {end}."
            )
        return int.from_bytes(raw[self.byte_offset:end], "big")


FLUID_POSITION_V1 = ResolverWordSchema(
    name="fluid-position-by-nft-id-v1",
    function_signature="positionByNftId(uint256)",
    word_index=7,
)


class VaultDebtReader:
    def __init__(
        self,
        chain: ChainClient,
        resolver_address: str,
        position_id: int,
        schema: ResolverWordSchema = FLUID_POSITION_V1,
        policy: DebtReadPolicy = DebtReadPolicy.ASSUME_ZERO,
    ) -> None:
        self._chain = chain
        self._resolver_address = resolver_address
        self._position_id = position_id
        self._schema = schema
        self._policy = policy

    def read_debt(self) -> VaultDebt:
        """Return the position's debt; on failure either degrade to zero or raise."""

        calldata = selector(self._schema.function_signature) + encode(
            ["uint256"], [self._position_id]
        )
        try:
            raw = self._chain.call(self._resolver_address, calldata)
            amount = self._schema.extract(raw)
        except (ChainRpcError, DebtDecodeError) as exc:
            if self._policy == DebtReadPolicy.ABORT:
                raise DebtReadError(f"Vault debt read failed: {exc}") from exc
            logger.warning(
                "Vault debt read failed (%s); assuming zero debt, all funds go to collateral.",
                exc,
            )
            return VaultDebt(amount=0, decimals=self._schema.decimals, degraded=True)

        logger.info("Vault debt from resolver: %d (%d decimals)", amount, self._schema.decimals)
        return VaultDebt(amount=amount, decimals=self._schema.decimals)
