"""Unit tests for key loading and transaction signing."""

import tempfile
import unittest
from pathlib import Path

from wallet_core.keystore import (
    FileKeySource,
    InlineKeySource,
    KeyMaterialError,
    resolve_key_source,
)
from wallet_core.signer import TransactionSigner

# Well-known test key (hardhat account #0); never holds funds on mainnet.
TEST_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class KeystoreTests(unittest.TestCase):
    def test_inline_key_preferred(self) -> None:
        source = resolve_key_source(TEST_KEY, "/does/not/exist")
        self.assertIsInstance(source, InlineKeySource)
        self.assertEqual(source.load(), TEST_KEY)

    def test_key_file_trimmed(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "private_key"
            path.write_text(TEST_KEY[2:] + "\n")
            source = resolve_key_source(None, str(path))
            self.assertIsInstance(source, FileKeySource)
            self.assertEqual(source.load(), TEST_KEY)

    def test_missing_key_rejected(self) -> None:
        with self.assertRaises(KeyMaterialError):
            resolve_key_source(None, None)
        with self.assertRaises(KeyMaterialError):
            FileKeySource(Path("/does/not/exist")).load()

    def test_malformed_key_rejected(self) -> None:
        for value in ("", "   ", "0x1234", "zz" * 32):
            with self.assertRaises(KeyMaterialError):
                InlineKeySource(value).load()


class TransactionSignerTests(unittest.TestCase):
    def test_address_derived_from_key(self) -> None:
        signer = TransactionSigner.from_source(InlineKeySource(TEST_KEY))
        self.assertEqual(signer.address, TEST_ADDRESS)

    def test_signing_is_deterministic(self) -> None:
        signer = TransactionSigner.from_source(InlineKeySource(TEST_KEY))
        tx = {
            "to": "0x1111111111111111111111111111111111111111",
            "value": 0,
            "gas": 300_000,
            "gasPrice": 10**9,
            "nonce": 0,
            "chainId": 1,
            "data": "0x",
        }
        first = signer.sign_transaction(tx)
        second = signer.sign_transaction(tx)
        self.assertEqual(first, second)
        self.assertIsInstance(first, bytes)
        self.assertGreater(len(first), 0)

    def test_repr_hides_key(self) -> None:
        signer = TransactionSigner.from_source(InlineKeySource(TEST_KEY))
        self.assertNotIn(TEST_KEY[2:], repr(signer))


if __name__ == "__main__":
    unittest.main()
