"""Operator CLI for the DCA executor."""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
from threading import Event
from typing import List, Optional

from execution_adapter.ethereum.chain import ChainRpcError, Web3ChainClient
from execution_adapter.ethereum.contract import ContractDecodeError
from execution_adapter.ethereum.resolver import DebtReadError
from execution_engine.config import ConfigError, ExecutorConfig, load_config
from execution_engine.engine import ExecutionEngine
from execution_engine.models import ExecutionResult
from wallet_core.keystore import KeyMaterialError

from .scheduler import RetryPolicy, Scheduler

logger = logging.getLogger("operator_cli")

EXIT_NOT_NEEDED = 2


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="fluid-dca")
    parser.add_argument("--env-file")
    parser.add_argument("--log-level", default=os.environ.get("LOG_LEVEL", "INFO"))
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser("check")
    check_parser.set_defaults(func=_check)

    execute_parser = subparsers.add_parser("execute")
    execute_parser.add_argument("--dry-run", action="store_true")
    execute_parser.add_argument("--json", action="store_true")
    execute_parser.set_defaults(func=_execute)

    loop_parser = subparsers.add_parser("loop")
    loop_parser.add_argument("--dry-run", action="store_true")
    loop_parser.add_argument("--interval-minutes", type=float, default=60.0)
    loop_parser.add_argument("--max-attempts", type=int, default=3)
    loop_parser.set_defaults(func=_loop)

    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        return args.func(args)
    except (
        ConfigError,
        KeyMaterialError,
        ChainRpcError,
        ContractDecodeError,
        DebtReadError,
    ) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


def _check(args: argparse.Namespace) -> int:
    config = load_config(args.env_file, require_signer=False)
    chain = Web3ChainClient.from_rpc_url(
        config.rpc_url.get_secret_value(),
        chain_id=config.chain_id,
        timeout=config.rpc_timeout_seconds,
    )
    engine = ExecutionEngine(config, chain, route_fetcher=None, signer=None)
    report = engine.check_status()
    print(json.dumps(report.to_dict(), indent=2))
    return 0 if report.can_execute else EXIT_NOT_NEEDED


def _execute(args: argparse.Namespace) -> int:
    config = _load_run_config(args)
    result = _run_once(config)
    _print_result(result, as_json=args.json)
    return result.exit_code


def _loop(args: argparse.Namespace) -> int:
    config = _load_run_config(args)
    stop_event = Event()
    _install_signal_handlers(stop_event)

    scheduler = Scheduler(
        run_once=lambda: _run_once(config, stop_event),
        interval_seconds=args.interval_minutes * 60,
        stop_event=stop_event,
        retry_policy=RetryPolicy(max_attempts=args.max_attempts),
        on_result=lambda result: _print_result(result, as_json=False),
    )
    logger.info(
        "Automation starting for %s every %.0f minutes (dry run: %s)",
        config.contract_address,
        args.interval_minutes,
        config.dry_run,
    )
    last = scheduler.run_forever()
    return 0 if last is None else last.exit_code


def _load_run_config(args: argparse.Namespace) -> ExecutorConfig:
    dry_run = True if args.dry_run else None
    return load_config(args.env_file, dry_run=dry_run)


def _run_once(config: ExecutorConfig, cancel_event: Optional[Event] = None) -> ExecutionResult:
    engine = ExecutionEngine.from_config(config, cancel_event=cancel_event)
    return engine.run()


def _print_result(result: ExecutionResult, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
        return
    print("=" * 42)
    print(result.summary())
    print("=" * 42)


def _install_signal_handlers(stop_event: Event) -> None:
    def _handle(signum, _frame) -> None:
        logger.info("Shutdown signal %s received", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    raise SystemExit(main())
