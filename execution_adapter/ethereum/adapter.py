"""Translate per-leg swap routes into the contract's execute() payload."""

from typing import Tuple

from .addresses import ZERO_ADDRESS
from .calldata import encode_execute_calldata
from .models import AbsentLeg, ExecutePayload, Leg, PresentLeg, SwapDescription


class AdapterError(ValueError):
    """Raised when legs cannot be adapted into an execute payload."""


def build_execute_payload(contract_address: str, debt_leg: Leg, collateral_leg: Leg) -> ExecutePayload:
    if isinstance(debt_leg, AbsentLeg) and isinstance(collateral_leg, AbsentLeg):
        raise AdapterError("At least one leg must carry a swap route.")

    data = encode_execute_calldata(_leg_arguments(debt_leg), _leg_arguments(collateral_leg))
    return ExecutePayload(to_address=contract_address, data=data, value_wei=0)


def leg_for(route, src_token: str, dst_token: str) -> Leg:
    """Wrap an optional route into the leg sum type."""

    if route is None:
        return AbsentLeg(src_token=src_token, dst_token=dst_token)
    return PresentLeg(route=route)


def _leg_arguments(leg: Leg) -> Tuple[str, SwapDescription, bytes]:
    if isinstance(leg, PresentLeg):
        route = leg.route
        return route.executor, route.description, route.executor_data
    if isinstance(leg, AbsentLeg):
        return ZERO_ADDRESS, _placeholder_description(leg), b""
    raise AdapterError(f"Unsupported leg type: {type(leg).__name__}")


def _placeholder_description(leg: AbsentLeg) -> SwapDescription:
    return SwapDescription(
        src_token=leg.src_token,
        dst_token=leg.dst_token,
        src_receiver=ZERO_ADDRESS,
        dst_receiver=ZERO_ADDRESS,
        amount=0,
        min_return_amount=0,
        flags=0,
    )
