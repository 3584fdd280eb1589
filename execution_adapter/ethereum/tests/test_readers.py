"""On-chain view readers: DCA contract, price feeds and vault debt."""

import unittest

from eth_abi import encode

from execution_adapter.ethereum.calldata import selector
from execution_adapter.ethereum.chain import ChainRpcError
from execution_adapter.ethereum.contract import ContractDecodeError, DcaContractReader
from execution_adapter.ethereum.oracle import OracleReadError, PriceOracleReader
from execution_adapter.ethereum.resolver import (
    FLUID_POSITION_V1,
    DebtDecodeError,
    DebtReadError,
    DebtReadPolicy,
    ResolverWordSchema,
    VaultDebtReader,
)

CONTRACT = "0x1111111111111111111111111111111111111111"
FEED = "0x4444444444444444444444444444444444444444"
RESOLVER = "0x5555555555555555555555555555555555555555"


class ScriptedChain:
    """Answers ``call`` from a selector-keyed table."""

    def __init__(self, responses) -> None:
        self.responses = responses
        self.calls = []

    def call(self, to, data, sender=None):
        self.calls.append((to, data))
        value = self.responses[data[:4]]
        if isinstance(value, Exception):
            raise value
        return value


def _round_data(answer: int, updated_at: int = 1_700_000_000) -> bytes:
    return encode(
        ["uint80", "int256", "uint256", "uint256", "uint80"],
        [7, answer, updated_at, updated_at, 7],
    )


def _words(count: int, index: int, value: int) -> bytes:
    words = [0] * count
    words[index] = value
    return encode(["uint256"] * count, words)


class DcaContractReaderTests(unittest.TestCase):
    def test_reads_views(self) -> None:
        reader = DcaContractReader(
            ScriptedChain(
                {
                    selector("canExecute()"): encode(["bool"], [True]),
                    selector("getBalances()"): encode(
                        ["uint256", "uint256", "uint256"], [10**21, 5 * 10**6, 10**16]
                    ),
                    selector("maxSlippageBps()"): encode(["uint256"], [100]),
                    selector("minEureThreshold()"): encode(["uint256"], [10**20]),
                }
            ),
            CONTRACT,
        )

        self.assertTrue(reader.can_execute())
        snapshot = reader.balances()
        self.assertEqual(snapshot.source_balance, 10**21)
        self.assertEqual(snapshot.secondary_balance, 5 * 10**6)
        self.assertEqual(snapshot.tertiary_balance, 10**16)
        self.assertEqual(reader.max_slippage_bps(), 100)
        self.assertEqual(reader.min_threshold(), 10**20)

    def test_malformed_view_rejected(self) -> None:
        chain = ScriptedChain({selector("getBalances()"): b"\x00" * 10})
        with self.assertRaises(ContractDecodeError):
            DcaContractReader(chain, CONTRACT).balances()

    def test_slippage_above_full_range_rejected(self) -> None:
        chain = ScriptedChain({selector("maxSlippageBps()"): encode(["uint256"], [10_001])})
        with self.assertRaises(ContractDecodeError):
            DcaContractReader(chain, CONTRACT).max_slippage_bps()


class PriceOracleReaderTests(unittest.TestCase):
    def _read(self, value):
        chain = ScriptedChain({selector("latestRoundData()"): value})
        return PriceOracleReader(chain).latest_price(FEED)

    def test_latest_answer(self) -> None:
        reading = self._read(_round_data(108_512_000))
        self.assertEqual(reading.answer, 108_512_000)
        self.assertEqual(reading.decimals, 8)

    def test_non_positive_answer_rejected(self) -> None:
        for answer in (0, -5):
            with self.assertRaises(OracleReadError):
                self._read(_round_data(answer))

    def test_incomplete_round_rejected(self) -> None:
        with self.assertRaises(OracleReadError):
            self._read(_round_data(100_000_000, updated_at=0))

    def test_rpc_failure_wrapped(self) -> None:
        with self.assertRaises(OracleReadError):
            self._read(ChainRpcError("connection refused"))

    def test_malformed_data_rejected(self) -> None:
        with self.assertRaises(OracleReadError):
            self._read(b"\x01\x02")


class VaultDebtReaderTests(unittest.TestCase):
    def _reader(self, value, policy=DebtReadPolicy.ASSUME_ZERO) -> VaultDebtReader:
        chain = ScriptedChain({selector("positionByNftId(uint256)"): value})
        self.chain = chain
        return VaultDebtReader(chain, RESOLVER, 8765, policy=policy)

    def test_debt_read_from_word_seven(self) -> None:
        debt = self._reader(_words(20, 7, 600 * 10**6)).read_debt()

        self.assertEqual(debt.amount, 600 * 10**6)
        self.assertEqual(debt.decimals, 6)
        self.assertFalse(debt.degraded)
        _, data = self.chain.calls[0]
        self.assertEqual(data[4:], encode(["uint256"], [8765]))

    def test_schema_offset(self) -> None:
        self.assertEqual(FLUID_POSITION_V1.byte_offset, 224)
        schema = ResolverWordSchema("test", "positionByNftId(uint256)", word_index=2)
        self.assertEqual(schema.extract(_words(3, 2, 42)), 42)

    def test_short_response_degrades_to_zero(self) -> None:
        reader = self._reader(_words(7, 0, 1))
        with self.assertLogs("execution_adapter.ethereum.resolver", level="WARNING"):
            debt = reader.read_debt()
        self.assertEqual(debt.amount, 0)
        self.assertTrue(debt.degraded)

    def test_short_response_raises_decode_error(self) -> None:
        with self.assertRaises(DebtDecodeError):
            FLUID_POSITION_V1.extract(b"\x00" * 255)

    def test_rpc_failure_aborts_under_strict_policy(self) -> None:
        reader = self._reader(ChainRpcError("timeout"), policy=DebtReadPolicy.ABORT)
        with self.assertRaises(DebtReadError):
            reader.read_debt()


if __name__ == "__main__":
    unittest.main()
