"""ABI encoding and decoding for router swap calls and the execute entry point."""

from typing import Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, is_hex_address, to_checksum_address

from .models import SwapDescription


class CalldataFormatError(ValueError):
    """Raised when aggregator calldata does not match the router swap shape."""


SWAP_DESCRIPTION_TYPE = "(address,address,address,address,uint256,uint256,uint256)"

SWAP_SIGNATURE = f"swap(address,{SWAP_DESCRIPTION_TYPE},bytes)"
SWAP_ARG_TYPES = ["address", SWAP_DESCRIPTION_TYPE, "bytes"]
SWAP_SELECTOR = function_signature_to_4byte_selector(SWAP_SIGNATURE)

EXECUTE_SIGNATURE = (
    f"execute(address,{SWAP_DESCRIPTION_TYPE},bytes,address,{SWAP_DESCRIPTION_TYPE},bytes)"
)
EXECUTE_ARG_TYPES = [
    "address",
    SWAP_DESCRIPTION_TYPE,
    "bytes",
    "address",
    SWAP_DESCRIPTION_TYPE,
    "bytes",
]
EXECUTE_SELECTOR = function_signature_to_4byte_selector(EXECUTE_SIGNATURE)


def selector(signature: str) -> bytes:
    return function_signature_to_4byte_selector(signature)


def hex_to_bytes(value: str) -> bytes:
    text = value[2:] if value.startswith(("0x", "0X")) else value
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise CalldataFormatError("Calldata is not valid hex.") from exc


def decode_swap_calldata(calldata: bytes) -> Tuple[str, SwapDescription, bytes]:
    """Split router ``swap`` calldata into executor, description and executor data."""

    if len(calldata) < 4 or calldata[:4] != SWAP_SELECTOR:
        raise CalldataFormatError(
            f"Unexpected function selector 0x{calldata[:4].hex()}; "
            f"expected 0x{SWAP_SELECTOR.hex()} for {SWAP_SIGNATURE}."
        )
    try:
        executor, desc, data = decode(SWAP_ARG_TYPES, calldata[4:])
    except (DecodingError, ValueError, OverflowError) as exc:
        raise CalldataFormatError(f"Unable to decode swap calldata: {exc}") from exc

    description = SwapDescription(
        src_token=to_checksum_address(desc[0]),
        dst_token=to_checksum_address(desc[1]),
        src_receiver=to_checksum_address(desc[2]),
        dst_receiver=to_checksum_address(desc[3]),
        amount=int(desc[4]),
        min_return_amount=int(desc[5]),
        flags=int(desc[6]),
    )
    return to_checksum_address(executor), description, bytes(data)


def encode_swap_calldata(executor: str, description: SwapDescription, data: bytes) -> bytes:
    return SWAP_SELECTOR + encode(
        SWAP_ARG_TYPES,
        [_address(executor), _description_tuple(description), data],
    )


def encode_execute_calldata(
    debt_leg: Tuple[str, SwapDescription, bytes],
    collateral_leg: Tuple[str, SwapDescription, bytes],
) -> bytes:
    debt_executor, debt_desc, debt_data = debt_leg
    collateral_executor, collateral_desc, collateral_data = collateral_leg
    return EXECUTE_SELECTOR + encode(
        EXECUTE_ARG_TYPES,
        [
            _address(debt_executor),
            _description_tuple(debt_desc),
            debt_data,
            _address(collateral_executor),
            _description_tuple(collateral_desc),
            collateral_data,
        ],
    )


def decode_execute_calldata(calldata: bytes) -> Tuple[tuple, tuple]:
    """Inverse of ``encode_execute_calldata``; used for payload inspection."""

    if calldata[:4] != EXECUTE_SELECTOR:
        raise CalldataFormatError("Payload does not target execute().")
    values = decode(EXECUTE_ARG_TYPES, calldata[4:])
    return (
        (to_checksum_address(values[0]), values[1], bytes(values[2])),
        (to_checksum_address(values[3]), values[4], bytes(values[5])),
    )


def same_address(left: str, right: str) -> bool:
    return left.lower() == right.lower()


def _address(value: str) -> str:
    if not isinstance(value, str) or not is_hex_address(value):
        raise CalldataFormatError(f"Invalid address: {value!r}")
    return to_checksum_address(value)


def _description_tuple(description: SwapDescription) -> tuple:
    return (
        _address(description.src_token),
        _address(description.dst_token),
        _address(description.src_receiver),
        _address(description.dst_receiver),
        description.amount,
        description.min_return_amount,
        description.flags,
    )
