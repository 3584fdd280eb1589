"""Loading of signing key material from the environment or a secret file."""

from pathlib import Path
from typing import Optional, Protocol


class KeyMaterialError(ValueError):
    """Raised when no usable private key can be loaded."""


class KeySource(Protocol):
    def load(self) -> str:
        ...


class InlineKeySource:
    def __init__(self, private_key: str) -> None:
        self._private_key = private_key

    def load(self) -> str:
        return _normalize(self._private_key)


class FileKeySource:
    """Reads a key from a secret file, e.g. a mounted /run/secrets entry."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> str:
        if not self._path.exists():
            raise KeyMaterialError(f"Private key file not found: {self._path}")
        return _normalize(self._path.read_text())


def resolve_key_source(private_key: Optional[str], key_file: Optional[str]) -> KeySource:
    """Prefer an inline key, fall back to the secret file."""

    if private_key:
        return InlineKeySource(private_key)
    if key_file:
        return FileKeySource(Path(key_file))
    raise KeyMaterialError("PRIVATE_KEY or PRIVATE_KEY_FILE is required.")


def _normalize(value: str) -> str:
    key = value.strip()
    if not key:
        raise KeyMaterialError("Private key is empty.")
    body = key[2:] if key.startswith("0x") else key
    if len(body) != 64:
        raise KeyMaterialError("Private key must be 32 bytes of hex.")
    try:
        bytes.fromhex(body)
    except ValueError as exc:
        raise KeyMaterialError("Private key must be hex encoded.") from exc
    return "0x" + body.lower()
