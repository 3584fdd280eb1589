"""Transaction signing for the executor account."""

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .keystore import KeySource


class TransactionSigner:
    """Holds the executor key in memory and signs transaction dicts."""

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @classmethod
    def from_source(cls, source: KeySource) -> "TransactionSigner":
        return cls(Account.from_key(source.load()))

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, tx: dict) -> bytes:
        signed = self._account.sign_transaction(tx)
        raw = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction")
        return bytes(raw)

    def __repr__(self) -> str:
        return f"TransactionSigner(address={self.address})"
