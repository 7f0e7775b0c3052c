"""
platcheck -- Candidate Minimizer

Given a candidate that makes the oracle fail, shrink it by deleting
structure while the same failure keeps reproducing:

  1. ddmin over the "-"-separated fragments
  2. ddmin over the characters of what is left

This runs after Hypothesis has shrunk the generator's choices. That pass
works on the fragment trees; this one works on the final string, so it can
remove characters no single tree edit could.

The result is always a subsequence of the input, so it is never more
complex by fragment count or length.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from typing import Any

import structlog

from platcheck.errors import OracleFailure
from platcheck.generators import SEPARATOR
from platcheck.oracle import RoundTripOracle
from platcheck.types import TrialVerdict

logger = structlog.get_logger(system="platcheck.shrink")


class CandidateClass(enum.StrEnum):
    """
    Tri-state candidate classification for delta debugging.

    - reproduces: the oracle raises the original failure type
    - passes: the round trip holds, or a different failure type is raised
    - discarded: expected rejection, or the step budget is spent
    """

    REPRODUCES = "reproduces"
    PASSES = "passes"
    DISCARDED = "discarded"


def _split_chunks(length: int, n: int) -> list[tuple[int, int]]:
    """Split [0..length) into n contiguous ranges."""
    if length == 0:
        return []
    n = max(1, min(n, length))
    base, rem = divmod(length, n)
    chunks = []
    start = 0
    for i in range(n):
        end = start + base + (1 if i < rem else 0)
        chunks.append((start, end))
        start = end
    return chunks


def ddmin(items: Sequence[Any], test: Callable[[list[Any]], CandidateClass]) -> list[Any]:
    """
    Zeller-style ddmin for ordered lists.

    Repeatedly drops one chunk at a time, keeping any complement that still
    reproduces, and doubles the granularity when no chunk can be dropped.
    """
    if test(list(items)) != CandidateClass.REPRODUCES:
        raise ValueError("ddmin called with a non-failing starting set")

    n = 2
    current = list(items)
    while len(current) >= 2:
        reduced = False
        for start, end in _split_chunks(len(current), n):
            candidate = current[:start] + current[end:]
            if test(candidate) == CandidateClass.REPRODUCES:
                current = candidate
                n = max(2, n - 1)
                reduced = True
                break
        if reduced:
            continue
        if n >= len(current):
            break
        n = min(len(current), n * 2)
    return current


class CandidateMinimizer:
    """Shrinks a failing candidate string against a RoundTripOracle."""

    def __init__(
        self,
        oracle: RoundTripOracle,
        failure_type: type[OracleFailure],
        *,
        max_steps: int = 2_000,
    ) -> None:
        self._oracle = oracle
        self._failure_type = failure_type
        self._max_steps = max_steps
        self._tests_run = 0
        self._cache: dict[str, CandidateClass] = {}

    @property
    def tests_run(self) -> int:
        return self._tests_run

    def classify(self, candidate: str) -> CandidateClass:
        if candidate in self._cache:
            return self._cache[candidate]
        if self._tests_run >= self._max_steps:
            return CandidateClass.DISCARDED

        self._tests_run += 1
        match self._oracle.classify(candidate):
            case TrialVerdict.FAILURE, exc if type(exc) is self._failure_type:
                outcome = CandidateClass.REPRODUCES
            case TrialVerdict.EXPECTED_REJECTION, _:
                outcome = CandidateClass.DISCARDED
            case _:
                # passes, or a different failure type
                outcome = CandidateClass.PASSES
        self._cache[candidate] = outcome
        return outcome

    def minimize(self, candidate: str) -> str:
        """Return the smallest reproducer found, starting from `candidate`."""
        if self._max_steps == 0:
            return candidate
        if self.classify(candidate) != CandidateClass.REPRODUCES:
            # a flaky failure: nothing stable to shrink against
            return candidate
        parts = ddmin(
            candidate.split(SEPARATOR),
            lambda items: self.classify(SEPARATOR.join(items)),
        )
        text = SEPARATOR.join(parts)
        if text:
            text = "".join(ddmin(list(text), lambda items: self.classify("".join(items))))

        logger.info(
            "candidate_minimized",
            original=candidate,
            minimal=text,
            tests_run=self._tests_run,
        )
        return text
