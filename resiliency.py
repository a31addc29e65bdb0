# resiliency.py
"""
Retry/backoff and fallback around one build attempt.

IDLE -> ATTEMPTING -> SUCCESS -> DONE
                   -> RETRYING -> ATTEMPTING (after backoff)
                   -> RETRIES_EXHAUSTED -> previous snapshot | seed list -> DONE
"""
import logging
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable, List, Optional

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import MAX_RETRIES, BACKOFF_FACTOR, MIN_WAIT, MAX_WAIT
from errors import NetworkError, ParseError, PersistenceError, SymbolBuildError, ValidationError
from logger import log
from snapshot_store import SnapshotStore

RETRYABLE = (NetworkError, ParseError, ValidationError)


class BuildState(Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCESS = "success"
    RETRIES_EXHAUSTED = "retries_exhausted"
    DONE = "done"


class BuildOutcome(IntEnum):
    """Terminal outcomes; the value is the process exit code."""
    UNCHANGED = 0           # fresh list identical to the artifact
    UPDATED = 2             # fresh list written
    DEGRADED = 3            # retries exhausted, previous snapshot rewritten
    SEEDED = 4              # retries exhausted, no snapshot, seed list written
    PERSISTENCE_FAILED = 5  # the artifact could not be read or written

    @property
    def ok(self) -> bool:
        return self in (BuildOutcome.UNCHANGED, BuildOutcome.UPDATED)


@dataclass
class BuildResult:
    outcome: BuildOutcome
    message: str
    symbols: List[str] = field(default_factory=list)
    attempts: int = 0
    written: bool = False
    error: Optional[SymbolBuildError] = None

    @property
    def changed(self) -> bool:
        """True when a downstream commit step has something new to commit."""
        return self.outcome is BuildOutcome.UPDATED

    @property
    def exit_code(self) -> int:
        return int(self.outcome)


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = MAX_RETRIES
    factor: float = BACKOFF_FACTOR
    min_wait: float = MIN_WAIT
    max_wait: float = MAX_WAIT

    def wait(self):
        return wait_exponential(
            multiplier=self.min_wait, min=self.min_wait, max=self.max_wait, exp_base=self.factor
        )


def _describe(error: SymbolBuildError) -> str:
    if isinstance(error, ValidationError):
        return f"{error.kind}: observed {error.observed} symbols, required {error.required}"
    return f"{error.kind}: {error}"


class ResiliencyController:
    """
    Runs `pipeline` (fetch -> parse -> normalize -> validate) under `policy`
    and persists the outcome through `store`.
    """

    def __init__(
        self,
        pipeline: Callable[[], List[str]],
        store: SnapshotStore,
        seed: List[str],
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        canonicalize: Optional[Callable[[List[str]], List[str]]] = None,
    ):
        self.pipeline = pipeline
        self.store = store
        self.seed = seed
        self.policy = policy or RetryPolicy()
        self.sleep = sleep
        # applied to a fallback snapshot so it is rewritten in the current convention
        self.canonicalize = canonicalize
        self.state = BuildState.IDLE

    def _before_sleep(self, retry_state) -> None:
        self.state = BuildState.RETRYING
        err = retry_state.outcome.exception()
        left = self.policy.attempts - retry_state.attempt_number
        log.warning(
            f"[build] attempt {retry_state.attempt_number} failed ({left} left): "
            f"{_describe(err)}; retrying in {retry_state.next_action.sleep:.1f}s"
        )

    def _attempt(self) -> List[str]:
        self.state = BuildState.ATTEMPTING
        return self.pipeline()

    def run(self) -> BuildResult:
        self.state = BuildState.IDLE
        try:
            previous = self.store.load()
        except PersistenceError as e:
            return self._finish(BuildOutcome.PERSISTENCE_FAILED, f"Could not read snapshot: {_describe(e)}", error=e)

        retrying = Retrying(
            stop=stop_after_attempt(self.policy.attempts),
            wait=self.policy.wait(),
            retry=retry_if_exception_type(RETRYABLE),
            sleep=self.sleep,
            before_sleep=self._before_sleep,
            reraise=True,
        )
        attempts = 0
        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    symbols = self._attempt()
        except RETRYABLE as e:
            self.state = BuildState.RETRIES_EXHAUSTED
            log.error(f"[build] giving up after {attempts} attempt(s): {_describe(e)}")
            return self._fall_back(previous, e, attempts)

        self.state = BuildState.SUCCESS
        try:
            result = self.store.diff_and_write(symbols)
        except PersistenceError as e:
            return self._finish(
                BuildOutcome.PERSISTENCE_FAILED, f"Could not write artifact: {_describe(e)}",
                symbols=symbols, attempts=attempts, error=e,
            )

        if result.written:
            return self._finish(
                BuildOutcome.UPDATED, f"Wrote {result.count} symbols -> {result.location}",
                symbols=symbols, attempts=attempts, written=True,
            )
        return self._finish(
            BuildOutcome.UNCHANGED, f"No change ({result.count} symbols in {result.location})",
            symbols=symbols, attempts=attempts,
        )

    def _fall_back(self, previous: Optional[List[str]], error: SymbolBuildError, attempts: int) -> BuildResult:
        if previous and self.canonicalize is not None:
            previous = self.canonicalize(previous)
        if previous:
            outcome, symbols, source = BuildOutcome.DEGRADED, previous, "previous snapshot"
        else:
            outcome, symbols, source = BuildOutcome.SEEDED, list(self.seed), "built-in seed list"

        try:
            result = self.store.write(symbols)
        except PersistenceError as e:
            return self._finish(
                BuildOutcome.PERSISTENCE_FAILED,
                f"Could not write {source} after {_describe(error)}: {_describe(e)}",
                symbols=symbols, attempts=attempts, error=e,
            )
        return self._finish(
            outcome,
            f"Retries exhausted ({_describe(error)}); rewrote {source} "
            f"({result.count} symbols) -> {result.location}",
            symbols=symbols, attempts=attempts, written=True, error=error,
        )

    def _finish(self, outcome: BuildOutcome, message: str, **kwargs) -> BuildResult:
        self.state = BuildState.DONE
        level = logging.INFO if outcome.ok else logging.ERROR
        log.log(level, f"[build] {outcome.name}: {message}")
        return BuildResult(outcome=outcome, message=message, **kwargs)
