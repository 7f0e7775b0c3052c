"""
platcheck -- Property Runner

Drives the round-trip property with Hypothesis:

  Running     draw a candidate, run the oracle
  Discarding  expected rejection: reject() the draw, count it, keep going
  Failed      an OracleFailure escaped: Hypothesis shrinks the choices, then
              CandidateMinimizer shrinks the final string
  Passed      `max_examples` passing trials without a failure
  Exhausted   the discard budget ran out first

The per-trial deadline is measured here, around the oracle call, rather
than by Hypothesis: a slow trial becomes a TrialDeadlineExceeded failure
with the candidate attached, like any other defect.

Trials run strictly in sequence. The only state shared between trials is
the engine's seeded PRNG and the counters in _RunState, both owned by one
run() call.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Any

import structlog
from hypothesis import HealthCheck, Phase, Verbosity, given, reject, seed, settings
from hypothesis import strategies as st
from hypothesis.errors import FailedHealthCheck, Flaky, Unsatisfiable

from platcheck.codec import PlatformCodec
from platcheck.config import GeneratorConfig, OracleConfig, RunnerConfig
from platcheck.errors import GeneratorExhaustedError, OracleFailure, TrialDeadlineExceeded
from platcheck.generators import complexity, platform_strings
from platcheck.oracle import RoundTripOracle
from platcheck.shrink import CandidateMinimizer
from platcheck.types import RunReport, RunStatus, TrialVerdict, utc_now

logger = structlog.get_logger(system="platcheck.runner")


class _DiscardBudgetExceeded(BaseException):
    """
    Raised from inside a trial to stop the engine.

    Derives from BaseException so Hypothesis propagates it instead of
    treating it as a falsifying example and shrinking it.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass
class _RunState:
    passes: int = 0
    discards: int = 0
    consecutive_discards: int = 0
    trials_attempted: int = 0
    first_failure: OracleFailure | None = None
    last_failure: OracleFailure | None = None


class PropertyRunner:
    """Runs the round-trip property against one codec."""

    def __init__(
        self,
        codec: PlatformCodec[Any],
        config: RunnerConfig | None = None,
        *,
        generator: GeneratorConfig | None = None,
        oracle: OracleConfig | None = None,
        candidates: st.SearchStrategy[str] | None = None,
    ) -> None:
        self._config = config or RunnerConfig()
        self._generator = generator or GeneratorConfig()
        oracle_config = oracle or OracleConfig()
        self._oracle = RoundTripOracle(
            codec, rejection_template=oracle_config.rejection_template
        )
        self._candidates = candidates or platform_strings(
            min_fragments=self._generator.min_fragments,
            max_fragments=self._generator.max_fragments,
            max_depth=self._generator.max_depth,
            max_children=self._generator.max_children,
        )
        self._last_failure: OracleFailure | None = None

    @property
    def oracle(self) -> RoundTripOracle:
        return self._oracle

    # ── Public API ──────────────────────────────────────────────────────────

    def run(self) -> RunReport:
        """Run the property to a terminal state and return the report."""
        run_seed = self._config.seed
        if run_seed is None:
            run_seed = random.getrandbits(64)

        report = RunReport(seed=run_seed, quota=self._config.max_examples)
        state = _RunState()
        self._last_failure = None

        with structlog.contextvars.bound_contextvars(run_id=report.run_id, seed=run_seed):
            logger.info(
                "run_started",
                max_examples=self._config.max_examples,
                max_discards=self._config.max_discards,
                max_consecutive_discards=self._config.max_consecutive_discards,
            )
            test = self._build_test(state, run_seed)
            try:
                test()
            except _DiscardBudgetExceeded as exc:
                self._mark_exhausted(report, exc.reason)
            except Unsatisfiable as exc:
                self._mark_exhausted(report, f"no candidate survived the oracle: {exc}")
            except FailedHealthCheck as exc:
                self._mark_exhausted(report, f"generator health check failed: {exc}")
            except OracleFailure as exc:
                self._mark_failed(report, state, exc)
            except Flaky:
                # the final replay did not fail again; report what was seen
                if state.last_failure is None:
                    raise
                self._mark_failed(report, state, state.last_failure)

            report.passes = state.passes
            report.discards = state.discards
            report.trials_attempted = state.trials_attempted
            report.finished_at = utc_now()

            if report.status == RunStatus.PASSED:
                if report.passes < report.quota:
                    # the engine stops early on a small search space or too many rejections
                    logger.warning("quota_not_reached", passes=report.passes, quota=report.quota)
                logger.info(
                    "run_passed",
                    passes=report.passes,
                    discards=report.discards,
                    duration_ms=report.duration_ms,
                )
        return report

    def check(self) -> RunReport:
        """
        Like run(), but raise on anything other than a pass.

        Failures re-raise the oracle's exception for the minimal reproducer;
        exhaustion raises GeneratorExhaustedError.
        """
        report = self.run()
        if report.status == RunStatus.FAILED and self._last_failure is not None:
            raise self._last_failure
        if report.status == RunStatus.EXHAUSTED:
            raise GeneratorExhaustedError(
                report.exhaustion_reason, passes=report.passes, discards=report.discards
            )
        return report

    # ── Private: Engine ─────────────────────────────────────────────────────

    def _build_test(self, state: _RunState, run_seed: int) -> Any:
        config = self._config
        phases = [Phase.generate]
        if config.shrink:
            phases.append(Phase.shrink)

        def trial(candidate: str) -> None:
            generating = state.first_failure is None
            if generating:
                state.trials_attempted += 1

            started = time.perf_counter()
            try:
                verdict = self._oracle.check(candidate)
                elapsed_ms = (time.perf_counter() - started) * 1000
                if config.deadline_ms is not None and elapsed_ms > config.deadline_ms:
                    raise TrialDeadlineExceeded(
                        candidate, elapsed_ms=elapsed_ms, deadline_ms=config.deadline_ms
                    )
            except OracleFailure as exc:
                state.last_failure = exc
                if state.first_failure is None:
                    state.first_failure = exc
                    logger.info("failure_found", candidate=candidate, error=type(exc).__name__)
                raise

            if verdict == TrialVerdict.EXPECTED_REJECTION:
                if generating:
                    self._count_discard(state)
                reject()

            if generating:
                state.passes += 1
                state.consecutive_discards = 0

        wrapped = settings(
            max_examples=config.max_examples,
            deadline=None,
            database=None,
            phases=phases,
            derandomize=False,
            report_multiple_bugs=False,
            print_blob=False,
            verbosity=Verbosity.quiet,
            suppress_health_check=[
                HealthCheck.filter_too_much,
                HealthCheck.too_slow,
                HealthCheck.data_too_large,
            ],
        )(given(self._candidates)(trial))
        return seed(run_seed)(wrapped)

    def _count_discard(self, state: _RunState) -> None:
        state.discards += 1
        state.consecutive_discards += 1
        logger.debug("trial_discarded", discards=state.discards)

        if state.discards > self._config.max_discards:
            raise _DiscardBudgetExceeded(
                f"{state.discards} discards exceed max_discards={self._config.max_discards} "
                f"after {state.passes} passing trials"
            )
        if state.consecutive_discards > self._config.max_consecutive_discards:
            raise _DiscardBudgetExceeded(
                f"{state.consecutive_discards} consecutive discards exceed "
                f"max_consecutive_discards={self._config.max_consecutive_discards}"
            )

    # ── Private: Reporting ──────────────────────────────────────────────────

    def _mark_exhausted(self, report: RunReport, reason: str) -> None:
        report.status = RunStatus.EXHAUSTED
        report.exhaustion_reason = reason
        logger.warning("run_exhausted", reason=reason)

    def _mark_failed(self, report: RunReport, state: _RunState, exc: OracleFailure) -> None:
        """
        Record a failure. Hypothesis has replayed its minimal example last,
        so `exc` is the failure for the shrunk candidate.
        """
        original = state.first_failure or exc
        shrunk = exc.candidate

        minimal, minimal_exc, shrink_calls = shrunk, exc, 0
        # timing does not replay through the oracle, so a slow candidate stays as found
        if self._config.shrink and not isinstance(exc, TrialDeadlineExceeded):
            minimizer = CandidateMinimizer(
                self._oracle, type(exc), max_steps=self._config.max_shrink_steps
            )
            reduced = minimizer.minimize(shrunk)
            shrink_calls = minimizer.tests_run
            if reduced != shrunk:
                minimal, minimal_exc = reduced, self._replay(reduced) or exc

        # never report something more complex than what generation found
        if complexity(original.candidate) < complexity(minimal):
            minimal, minimal_exc = original.candidate, original

        report.status = RunStatus.FAILED
        report.original_candidate = original.candidate
        report.shrunk_candidate = shrunk
        report.minimal_candidate = minimal
        report.original_failure = original.detail()
        report.failure = minimal_exc.detail()
        report.shrink_calls = shrink_calls
        self._last_failure = minimal_exc

        logger.error(
            "run_failed",
            original=original.candidate,
            shrunk=shrunk,
            minimal=minimal,
            error=report.failure.error_type,
        )

    def _replay(self, candidate: str) -> OracleFailure | None:
        _, failure = self._oracle.classify(candidate)
        return failure

