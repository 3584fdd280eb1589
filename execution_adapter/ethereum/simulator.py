"""Pre-flight simulation of an execute payload via a read-only call."""

import logging

from .chain import CallRevertedError, ChainClient
from .models import ExecutePayload

logger = logging.getLogger(__name__)


class SimulationError(RuntimeError):
    """Raised when the pre-flight call reverts."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Simulation failed: {reason}")
        self.reason = reason


def simulate(chain: ChainClient, payload: ExecutePayload, sender: str) -> None:
    """Run the exact call against current state; raise on revert.

    RPC transport errors propagate unchanged so callers can tell a revert
    apart from an unreachable node.
    """

    _validate_payload(payload)
    try:
        chain.call(payload.to_address, payload.data, sender=sender)
    except CallRevertedError as exc:
        raise SimulationError(str(exc)) from exc
    logger.info("Simulation passed for %s", payload.to_address)


def _validate_payload(payload: ExecutePayload) -> None:
    if not payload.to_address:
        raise ValueError("Payload must include a target address.")
    if len(payload.data) < 4:
        raise ValueError("Payload data must include a function selector.")
    if payload.value_wei < 0:
        raise ValueError("Payload value must be non-negative.")
