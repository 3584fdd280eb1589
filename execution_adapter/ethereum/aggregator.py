"""Swap route fetching from the 1inch aggregation API."""

from decimal import Decimal
from typing import Any, Dict, Optional
import logging

from pydantic import BaseModel, ConfigDict, ValidationError
import requests

from .addresses import AGGREGATION_ROUTER, CHAIN_ID
from .calldata import CalldataFormatError, decode_swap_calldata, hex_to_bytes, same_address
from .models import SwapRoute

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.1inch.dev/swap/v6.0"
DEFAULT_TIMEOUT_SECONDS = 30.0


class AggregatorNetworkError(RuntimeError):
    """Raised when the aggregator cannot be reached or times out."""


class AggregatorResponseError(RuntimeError):
    """Raised for non-2xx aggregator responses; keeps the body for diagnostics."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Aggregator returned HTTP {status_code}: {body[:500]}")
        self.status_code = status_code
        self.body = body


class ReceiverMismatchError(RuntimeError):
    """Raised when swap output would be sent somewhere other than the contract."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"dstReceiver mismatch: expected {expected}, got {actual}. "
            "Aborting to prevent fund loss."
        )
        self.expected = expected
        self.actual = actual


class SwapTx(BaseModel):
    model_config = ConfigDict(extra="ignore")

    to: str
    data: str
    value: str = "0"
    gas: int = 0


class SwapResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    dstAmount: int
    tx: SwapTx


class SwapRouteFetcher:
    """Fetches executable routes and validates their decoded calldata."""

    def __init__(
        self,
        api_key: str,
        chain_id: int = CHAIN_ID,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        router: str = AGGREGATION_ROUTER,
    ) -> None:
        if not api_key:
            raise ValueError("Aggregator API key is required.")
        self._api_key = api_key
        self._chain_id = chain_id
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._router = router

    def fetch_route(
        self,
        src_token: str,
        dst_token: str,
        amount: int,
        spender: str,
        receiver: str,
        slippage_bps: int,
    ) -> SwapRoute:
        if amount <= 0:
            raise ValueError("Route amount must be positive.")

        params = {
            "src": src_token,
            "dst": dst_token,
            "amount": str(amount),
            "from": spender,
            "receiver": receiver,
            "slippage": _bps_to_percent(slippage_bps),
            "disableEstimate": "true",
            "allowPartialFill": "false",
        }
        logger.info(
            "Fetching swap route %s -> %s amount=%d receiver=%s slippage=%sbps",
            src_token,
            dst_token,
            amount,
            receiver,
            slippage_bps,
        )
        payload = self._get(f"{self._api_base}/{self._chain_id}/swap", params)

        try:
            response = SwapResponse.model_validate(payload)
        except ValidationError as exc:
            raise CalldataFormatError(f"Aggregator response missing fields: {exc}") from exc

        if not same_address(response.tx.to, self._router):
            raise CalldataFormatError(
                f"Route targets {response.tx.to}, expected router {self._router}."
            )
        executor, description, executor_data = decode_swap_calldata(hex_to_bytes(response.tx.data))

        if not same_address(description.dst_receiver, receiver):
            raise ReceiverMismatchError(receiver, description.dst_receiver)
        if description.amount != amount:
            raise CalldataFormatError(
                f"Route amount {description.amount} does not match requested {amount}."
            )
        if not same_address(description.src_token, src_token) or not same_address(
            description.dst_token, dst_token
        ):
            raise CalldataFormatError("Route tokens do not match the requested pair.")

        return SwapRoute(
            source_asset=description.src_token,
            dest_asset=description.dst_token,
            source_amount=description.amount,
            expected_dest_amount=response.dstAmount,
            min_dest_amount=description.min_return_amount,
            executor=executor,
            executor_data=executor_data,
            description=description,
            raw_quote=payload,
        )

    def _get(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }
        try:
            response = self._session.get(url, params=params, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise AggregatorNetworkError(f"Aggregator request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise AggregatorResponseError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as exc:
            raise CalldataFormatError("Aggregator response is not JSON.") from exc


def _bps_to_percent(bps: int) -> str:
    if bps < 0:
        raise ValueError("Slippage must be non-negative.")
    return format(Decimal(bps) / Decimal(100), "f")
