"""Determinism tests for the allocation engine."""

import inspect
import unittest

from core import engine
from core.engine import calculate_allocation
from core.models import PriceReading


class AllocationDeterminismTests(unittest.TestCase):
    def test_same_input_same_plan(self) -> None:
        args = (10**21, 600 * 10**6, PriceReading(answer=108_000_000), PriceReading(answer=99_990_000))
        first = calculate_allocation(*args)
        second = calculate_allocation(*args)
        self.assertEqual(first, second)

    def test_engine_has_no_float_arithmetic(self) -> None:
        source = inspect.getsource(engine)
        self.assertNotIn("float(", source)

    def test_engine_has_no_io_dependencies(self) -> None:
        source = inspect.getsource(engine)
        for token in ("requests", "web3", "open(", "logging"):
            self.assertNotIn(token, source)


if __name__ == "__main__":
    unittest.main()
