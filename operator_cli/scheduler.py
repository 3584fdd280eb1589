"""Interval scheduler with bounded retries around single executions."""

from dataclasses import dataclass
from threading import Event
from typing import Callable, Optional, Sequence
import logging

from execution_engine.models import (
    ExecutionResult,
    ExecutionStage,
    ExecutionStatus,
    FailureKind,
    RunDetails,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAYS = (30.0, 60.0, 120.0)
DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delays: Sequence[float] = DEFAULT_RETRY_DELAYS

    def delay_after(self, attempt: int) -> float:
        index = min(attempt - 1, len(self.delays) - 1)
        return self.delays[index] if self.delays else 0.0


def run_with_retry(
    run_once: Callable[[], ExecutionResult],
    policy: RetryPolicy,
    stop_event: Event,
) -> ExecutionResult:
    """Repeat ``run_once`` while it fails in a retryable way.

    Results that are not needed or blocked come back at once. A failure after
    submission is never retried since the transaction may still land.
    """

    attempt = 1
    while True:
        result = _guarded(run_once)
        if not result.retryable:
            return result
        if attempt >= policy.max_attempts or stop_event.is_set():
            return result
        delay = policy.delay_after(attempt)
        logger.warning("Attempt %d failed (%s), retrying in %.0fs", attempt, result.reason, delay)
        if stop_event.wait(delay):
            return result
        attempt += 1


def _guarded(run_once: Callable[[], ExecutionResult]) -> ExecutionResult:
    """Turn an error raised outside the engine into a retryable failure.

    Engine setup (key loading, client construction) happens before anything is
    sent, so such a failure never carries a submission.
    """

    try:
        return run_once()
    except Exception as exc:
        logger.exception("Run could not start")
        return ExecutionResult.failed(
            ExecutionStage.IDLE,
            FailureKind.UNKNOWN,
            f"{type(exc).__name__}: {exc}",
            RunDetails(),
        )


class Scheduler:
    def __init__(
        self,
        run_once: Callable[[], ExecutionResult],
        interval_seconds: float,
        stop_event: Event,
        retry_policy: Optional[RetryPolicy] = None,
        on_result: Optional[Callable[[ExecutionResult], None]] = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive.")
        self._run_once = run_once
        self._interval = interval_seconds
        self._stop_event = stop_event
        self._retry_policy = retry_policy or RetryPolicy()
        self._on_result = on_result

    def tick(self) -> ExecutionResult:
        result = run_with_retry(self._run_once, self._retry_policy, self._stop_event)
        if result.status == ExecutionStatus.EXECUTED:
            logger.info("Run completed successfully")
        elif result.status == ExecutionStatus.NOT_NEEDED:
            logger.info("Execution not needed: %s", result.reason)
        else:
            logger.error("Run ended %s: %s", result.status.value, result.reason)
        if self._on_result is not None:
            self._on_result(result)
        return result

    def run_forever(self) -> Optional[ExecutionResult]:
        """Tick until the stop event is set; returns the last result."""

        last = None
        while not self._stop_event.is_set():
            last = self.tick()
            if self._stop_event.is_set():
                break
            logger.info("Sleeping for %.0f minutes", self._interval / 60)
            self._stop_event.wait(self._interval)
        logger.info("Scheduler stopped")
        return last
