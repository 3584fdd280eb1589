"""Smoke tests for the operator CLI."""

import json
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from unittest import mock

from core.models import BalanceSnapshot, VaultDebt
from execution_engine.config import ConfigError, ExecutorConfig
from execution_engine.models import (
    BlockReason,
    ExecutionResult,
    ExecutionStage,
    RunDetails,
    StatusReport,
)
from operator_cli.cli import main

CONTRACT = "0x1111111111111111111111111111111111111111"
TX_HASH = "0x" + "ab" * 32


def _config(dry_run=False) -> ExecutorConfig:
    return ExecutorConfig(contract_address=CONTRACT, rpc_url="http://localhost:8545", dry_run=dry_run)


class OperatorCliSmokeTests(unittest.TestCase):
    def _run(self, args):
        out, err = StringIO(), StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(args)
        return code, out.getvalue(), err.getvalue()

    def _patch_engine(self, result):
        engine = mock.Mock()
        engine.run.return_value = result
        patcher = mock.patch("operator_cli.cli.ExecutionEngine")
        engine_cls = patcher.start()
        self.addCleanup(patcher.stop)
        engine_cls.from_config.return_value = engine
        return engine_cls

    def _patch_config(self, **kwargs):
        patcher = mock.patch("operator_cli.cli.load_config", **kwargs)
        load = patcher.start()
        self.addCleanup(patcher.stop)
        return load

    def test_execute_prints_summary_and_exit_code(self) -> None:
        self._patch_config(return_value=_config())
        self._patch_engine(ExecutionResult.executed(RunDetails(), tx_hash=TX_HASH, gas_used=90_000))

        code, output, _ = self._run(["execute"])

        self.assertEqual(code, 0)
        self.assertIn("Status: EXECUTED", output)
        self.assertIn(TX_HASH, output)

    def test_execute_json_output(self) -> None:
        self._patch_config(return_value=_config())
        self._patch_engine(
            ExecutionResult.blocked(
                ExecutionStage.GATING,
                BlockReason.GAS_COST_EXCEEDED,
                "Gas cost 0.62 exceeds limit 0.50",
                RunDetails(),
            )
        )

        code, output, _ = self._run(["execute", "--json"])

        self.assertEqual(code, 3)
        payload = json.loads(output)
        self.assertEqual(payload["status"], "BLOCKED")
        self.assertEqual(payload["block_reason"], "GAS_COST_EXCEEDED")

    def test_dry_run_flag_forwarded(self) -> None:
        load = self._patch_config(return_value=_config(dry_run=True))
        self._patch_engine(ExecutionResult.executed(RunDetails(), dry_run=True))

        code, output, _ = self._run(["execute", "--dry-run"])

        self.assertEqual(code, 0)
        self.assertEqual(load.call_args.kwargs["dry_run"], True)
        self.assertIn("(dry run)", output)

    def test_not_needed_exit_code(self) -> None:
        self._patch_config(return_value=_config())
        self._patch_engine(
            ExecutionResult.not_needed(
                ExecutionStage.CHECKING_ELIGIBILITY, "EURe balance below threshold", RunDetails()
            )
        )

        code, _, _ = self._run(["execute"])
        self.assertEqual(code, 2)

    def test_config_error_reported(self) -> None:
        self._patch_config(side_effect=ConfigError("Missing required environment variables: DCA_ADDRESS"))

        code, output, err = self._run(["execute"])

        self.assertEqual(code, 1)
        self.assertEqual(output, "")
        self.assertIn("DCA_ADDRESS", err)

    def test_check_outputs_status_json(self) -> None:
        self._patch_config(return_value=_config())
        engine_cls = self._patch_engine(None)
        engine_cls.return_value.check_status.return_value = StatusReport(
            can_execute=False,
            snapshot=BalanceSnapshot(source_balance=5 * 10**18, secondary_balance=0, tertiary_balance=0),
            debt=VaultDebt(amount=0, degraded=True),
            min_threshold=100 * 10**18,
        )

        with mock.patch("operator_cli.cli.Web3ChainClient"):
            code, output, _ = self._run(["check"])

        self.assertEqual(code, 2)
        payload = json.loads(output)
        self.assertFalse(payload["can_execute"])
        self.assertEqual(payload["eure_balance"], "5")
        self.assertTrue(payload["debt_read_degraded"])


if __name__ == "__main__":
    unittest.main()
