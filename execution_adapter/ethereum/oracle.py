"""Chainlink price feed reads."""

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from core.models import PriceReading

from .calldata import selector
from .chain import ChainClient, ChainRpcError

FEED_DECIMALS = 8

_LATEST_ROUND_DATA = selector("latestRoundData()")
_ROUND_DATA_TYPES = ["uint80", "int256", "uint256", "uint256", "uint80"]


class OracleReadError(RuntimeError):
    """Raised when a price feed cannot be read or returns malformed data."""


class PriceOracleReader:
    """Reads the latest answer from an aggregator feed. No retries."""

    def __init__(self, chain: ChainClient, decimals: int = FEED_DECIMALS) -> None:
        self._chain = chain
        self._decimals = decimals

    def latest_price(self, oracle_address: str) -> PriceReading:
        try:
            raw = self._chain.call(oracle_address, _LATEST_ROUND_DATA)
        except ChainRpcError as exc:
            raise OracleReadError(f"Price feed {oracle_address} call failed: {exc}") from exc

        try:
            _, answer, _, updated_at, _ = decode(_ROUND_DATA_TYPES, raw)
        except (DecodingError, ValueError, OverflowError) as exc:
            raise OracleReadError(f"Price feed {oracle_address} returned malformed data.") from exc

        if answer <= 0:
            raise OracleReadError(f"Price feed {oracle_address} returned non-positive answer {answer}.")
        if updated_at == 0:
            raise OracleReadError(f"Price feed {oracle_address} round is incomplete.")

        return PriceReading(answer=int(answer), decimals=self._decimals)
