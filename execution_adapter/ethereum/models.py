"""Ethereum adapter models for swap routes and execute payloads."""

from dataclasses import dataclass, field
from typing import Any, Dict, Union


@dataclass(frozen=True)
class SwapDescription:
    """Router swap description tuple, field order matches the ABI."""

    src_token: str
    dst_token: str
    src_receiver: str
    dst_receiver: str
    amount: int
    min_return_amount: int
    flags: int


@dataclass(frozen=True)
class SwapRoute:
    source_asset: str
    dest_asset: str
    source_amount: int
    expected_dest_amount: int
    min_dest_amount: int
    executor: str
    executor_data: bytes
    description: SwapDescription
    raw_quote: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class AbsentLeg:
    """A leg whose allocation is zero; encoded as a placeholder."""

    src_token: str
    dst_token: str


@dataclass(frozen=True)
class PresentLeg:
    route: SwapRoute


Leg = Union[AbsentLeg, PresentLeg]


@dataclass(frozen=True)
class ExecutePayload:
    to_address: str
    data: bytes
    value_wei: int = 0

    @property
    def data_hex(self) -> str:
        return "0x" + self.data.hex()
