from .keystore import FileKeySource, InlineKeySource, KeyMaterialError, KeySource, resolve_key_source
from .signer import TransactionSigner

__all__ = [
    "FileKeySource",
    "InlineKeySource",
    "KeyMaterialError",
    "KeySource",
    "TransactionSigner",
    "resolve_key_source",
]
