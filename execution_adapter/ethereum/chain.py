"""JSON-RPC access behind a narrow protocol so readers stay testable."""

from dataclasses import dataclass
from typing import Optional, Protocol
import logging

from eth_utils import keccak
import requests
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

logger = logging.getLogger(__name__)

# maxFeePerGas is base fee times this plus the priority tip.
MAX_FEE_BASE_MULTIPLIER = 2


class ChainRpcError(RuntimeError):
    """Raised when the RPC endpoint fails or returns an unusable response."""


class CallRevertedError(ChainRpcError):
    """Raised when a read-only call or gas estimate reverts."""


class ConfirmationTimeoutError(ChainRpcError):
    """Raised when a submitted transaction is not mined in time."""

    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout:.0f}s")
        self.tx_hash = tx_hash
        self.timeout = timeout


class SubmissionUnknownError(ChainRpcError):
    """Raised when the raw transaction was handed to the node but the response was lost."""

    def __init__(self, tx_hash: str, cause: Exception) -> None:
        super().__init__(
            f"Broadcast of {tx_hash} failed after the raw transaction was sent: {cause}"
        )
        self.tx_hash = tx_hash


@dataclass(frozen=True)
class TxReceipt:
    tx_hash: str
    block_number: int
    gas_used: int
    success: bool


class TransactionSender(Protocol):
    @property
    def address(self) -> str:
        ...

    def sign_transaction(self, tx: dict) -> bytes:
        ...


class ChainClient(Protocol):
    def call(self, to: str, data: bytes, sender: Optional[str] = None) -> bytes:
        ...

    def estimate_gas(self, to: str, data: bytes, sender: str) -> int:
        ...

    def gas_price(self) -> int:
        ...

    def get_balance(self, address: str) -> int:
        ...

    def send_transaction(
        self, signer: TransactionSender, to: str, data: bytes, gas_limit: int
    ) -> str:
        ...

    def wait_for_receipt(self, tx_hash: str, timeout: float) -> TxReceipt:
        ...


class Web3ChainClient:
    """ChainClient backed by a web3 HTTP provider."""

    def __init__(self, w3: Web3, chain_id: int) -> None:
        self._w3 = w3
        self._chain_id = chain_id

    @classmethod
    def from_rpc_url(cls, rpc_url: str, chain_id: int, timeout: float = 30.0) -> "Web3ChainClient":
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        return cls(w3, chain_id)

    def call(self, to: str, data: bytes, sender: Optional[str] = None) -> bytes:
        tx = {"to": Web3.to_checksum_address(to), "data": Web3.to_hex(data)}
        if sender:
            tx["from"] = Web3.to_checksum_address(sender)
        try:
            return bytes(self._w3.eth.call(tx))
        except ContractLogicError as exc:
            raise CallRevertedError(_revert_reason(exc)) from exc
        except (Web3Exception, ValueError, requests.RequestException) as exc:
            raise ChainRpcError(f"eth_call to {to} failed: {exc}") from exc

    def estimate_gas(self, to: str, data: bytes, sender: str) -> int:
        tx = {
            "to": Web3.to_checksum_address(to),
            "from": Web3.to_checksum_address(sender),
            "data": Web3.to_hex(data),
        }
        try:
            return int(self._w3.eth.estimate_gas(tx))
        except ContractLogicError as exc:
            raise CallRevertedError(_revert_reason(exc)) from exc
        except (Web3Exception, ValueError, requests.RequestException) as exc:
            raise ChainRpcError(f"eth_estimateGas failed: {exc}") from exc

    def gas_price(self) -> int:
        try:
            return int(self._w3.eth.gas_price)
        except (Web3Exception, ValueError, requests.RequestException) as exc:
            raise ChainRpcError(f"eth_gasPrice failed: {exc}") from exc

    def get_balance(self, address: str) -> int:
        try:
            return int(self._w3.eth.get_balance(Web3.to_checksum_address(address)))
        except (Web3Exception, ValueError, requests.RequestException) as exc:
            raise ChainRpcError(f"eth_getBalance failed: {exc}") from exc

    def send_transaction(
        self, signer: TransactionSender, to: str, data: bytes, gas_limit: int
    ) -> str:
        try:
            nonce = self._w3.eth.get_transaction_count(signer.address, "pending")
            tx = {
                "to": Web3.to_checksum_address(to),
                "from": signer.address,
                "data": Web3.to_hex(data),
                "value": 0,
                "gas": gas_limit,
                "nonce": nonce,
                "chainId": self._chain_id,
            }
            tx.update(self._fee_fields())
            raw = signer.sign_transaction(tx)
        except (Web3Exception, ValueError, requests.RequestException) as exc:
            raise ChainRpcError(f"Transaction preparation failed: {exc}") from exc

        local_hash = _hex_hash(keccak(raw))
        try:
            tx_hash = self._w3.eth.send_raw_transaction(raw)
        except (Web3Exception, ValueError, requests.RequestException) as exc:
            raise SubmissionUnknownError(local_hash, exc) from exc
        tx_hash_hex = _hex_hash(tx_hash)
        logger.info("Submitted transaction %s (nonce %d, gas limit %d)", tx_hash_hex, nonce, gas_limit)
        return tx_hash_hex

    def wait_for_receipt(self, tx_hash: str, timeout: float) -> TxReceipt:
        try:
            receipt = self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        except TimeExhausted as exc:
            raise ConfirmationTimeoutError(tx_hash, timeout) from exc
        except (Web3Exception, ValueError, requests.RequestException) as exc:
            raise ChainRpcError(f"Receipt lookup for {tx_hash} failed: {exc}") from exc
        return TxReceipt(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
            success=receipt["status"] == 1,
        )

    def _fee_fields(self) -> dict:
        latest = self._w3.eth.get_block("latest")
        base_fee = latest.get("baseFeePerGas")
        if base_fee is None:
            return {"gasPrice": int(self._w3.eth.gas_price)}
        tip = int(self._w3.eth.max_priority_fee)
        max_fee = int(base_fee) * MAX_FEE_BASE_MULTIPLIER + tip
        return {"maxFeePerGas": max_fee, "maxPriorityFeePerGas": tip}


def _revert_reason(exc: ContractLogicError) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or "execution reverted"


def _hex_hash(tx_hash) -> str:
    text = tx_hash.hex() if hasattr(tx_hash, "hex") else str(tx_hash)
    return text if text.startswith("0x") else f"0x{text}"
