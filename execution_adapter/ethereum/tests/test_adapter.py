"""Execute payload construction and calldata tests."""

import inspect
import unittest

from execution_adapter.ethereum import adapter
from execution_adapter.ethereum.adapter import AdapterError, build_execute_payload, leg_for
from execution_adapter.ethereum.addresses import TOKENS, ZERO_ADDRESS
from execution_adapter.ethereum.calldata import (
    EXECUTE_SELECTOR,
    SWAP_SELECTOR,
    CalldataFormatError,
    decode_execute_calldata,
    decode_swap_calldata,
    encode_swap_calldata,
    hex_to_bytes,
)
from execution_adapter.ethereum.models import AbsentLeg, PresentLeg, SwapDescription, SwapRoute

CONTRACT = "0x1111111111111111111111111111111111111111"
EXECUTOR = "0x2222222222222222222222222222222222222222"


def _route(dst_token: str, amount: int) -> SwapRoute:
    description = SwapDescription(
        src_token=TOKENS["EURE"],
        dst_token=dst_token,
        src_receiver=EXECUTOR,
        dst_receiver=CONTRACT,
        amount=amount,
        min_return_amount=amount // 2,
        flags=4,
    )
    return SwapRoute(
        source_asset=TOKENS["EURE"],
        dest_asset=dst_token,
        source_amount=amount,
        expected_dest_amount=amount,
        min_dest_amount=amount // 2,
        executor=EXECUTOR,
        executor_data=b"\xde\xad\xbe\xef",
        description=description,
    )


class SwapCalldataTests(unittest.TestCase):
    def test_decode_router_swap(self) -> None:
        description = _route(TOKENS["USDC"], 10**18).description
        calldata = encode_swap_calldata(EXECUTOR, description, b"\x01")

        executor, decoded, data = decode_swap_calldata(calldata)

        self.assertEqual(calldata[:4], SWAP_SELECTOR)
        self.assertEqual(executor, EXECUTOR)
        self.assertEqual(decoded, description)
        self.assertEqual(data, b"\x01")

    def test_unknown_selector_rejected(self) -> None:
        with self.assertRaises(CalldataFormatError):
            decode_swap_calldata(b"\x12\x34\x56\x78" + b"\x00" * 64)

    def test_truncated_calldata_rejected(self) -> None:
        with self.assertRaises(CalldataFormatError):
            decode_swap_calldata(SWAP_SELECTOR + b"\x00" * 10)

    def test_hex_to_bytes(self) -> None:
        self.assertEqual(hex_to_bytes("0xabcd"), b"\xab\xcd")
        self.assertEqual(hex_to_bytes("abcd"), b"\xab\xcd")
        with self.assertRaises(CalldataFormatError):
            hex_to_bytes("0xzz")


class ExecutePayloadTests(unittest.TestCase):
    def test_both_legs_present(self) -> None:
        payload = build_execute_payload(
            CONTRACT,
            PresentLeg(_route(TOKENS["USDC"], 600)),
            PresentLeg(_route(TOKENS["WETH"], 400)),
        )

        self.assertEqual(payload.to_address, CONTRACT)
        self.assertEqual(payload.value_wei, 0)
        self.assertEqual(payload.data[:4], EXECUTE_SELECTOR)
        self.assertTrue(payload.data_hex.startswith("0x"))

        debt_leg, collateral_leg = decode_execute_calldata(payload.data)
        self.assertEqual(debt_leg[0], EXECUTOR)
        self.assertEqual(debt_leg[1][4], 600)
        self.assertEqual(collateral_leg[1][4], 400)
        self.assertEqual(collateral_leg[2], b"\xde\xad\xbe\xef")

    def test_absent_leg_encodes_placeholder(self) -> None:
        payload = build_execute_payload(
            CONTRACT,
            AbsentLeg(src_token=TOKENS["EURE"], dst_token=TOKENS["USDC"]),
            PresentLeg(_route(TOKENS["WETH"], 1000)),
        )

        debt_leg, _ = decode_execute_calldata(payload.data)
        executor, description, data = debt_leg
        self.assertEqual(executor, ZERO_ADDRESS)
        self.assertEqual(description[2].lower(), ZERO_ADDRESS)
        self.assertEqual(description[3].lower(), ZERO_ADDRESS)
        self.assertEqual(description[4:], (0, 0, 0))
        self.assertEqual(description[1].lower(), TOKENS["USDC"].lower())
        self.assertEqual(data, b"")

    def test_both_legs_absent_rejected(self) -> None:
        with self.assertRaises(AdapterError):
            build_execute_payload(
                CONTRACT,
                AbsentLeg(TOKENS["EURE"], TOKENS["USDC"]),
                AbsentLeg(TOKENS["EURE"], TOKENS["WETH"]),
            )

    def test_deterministic_payloads(self) -> None:
        debt = leg_for(_route(TOKENS["USDC"], 7), TOKENS["EURE"], TOKENS["USDC"])
        collateral = leg_for(None, TOKENS["EURE"], TOKENS["WETH"])

        first = build_execute_payload(CONTRACT, debt, collateral)
        second = build_execute_payload(CONTRACT, debt, collateral)

        self.assertIsInstance(collateral, AbsentLeg)
        self.assertEqual(first, second)

    def test_adapter_has_no_network_access(self) -> None:
        source = inspect.getsource(adapter)
        self.assertNotIn("requests", source)
        self.assertNotIn("send_transaction", source)


if __name__ == "__main__":
    unittest.main()
