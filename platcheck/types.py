"""
platcheck -- Harness Domain Types

Verdicts, failure details and run reports produced by the oracle and the
property runner. Uses HarnessBaseModel for consistency across the package.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from pydantic import BaseModel, Field
from ulid import ULID


def new_id() -> str:
    """Generate a new ULID string. Time-sortable, globally unique."""
    return str(ULID())


def utc_now() -> datetime:
    """Current UTC time, timezone-aware."""
    return datetime.now(timezone.utc)


class HarnessBaseModel(BaseModel):
    """Base model for all harness records."""

    model_config = {"populate_by_name": True, "from_attributes": True}


# ── Enums ────────────────────────────────────────────────────────────────────


class TrialVerdict(enum.StrEnum):
    """
    Outcome of running the oracle on one candidate string.

    `check()` returns the first two and raises on a failure; `classify()`
    returns all three.
    """

    PASS = "pass"
    EXPECTED_REJECTION = "expected_rejection"
    FAILURE = "failure"


class RunStatus(enum.StrEnum):
    """Terminal state of a property run."""

    PASSED = "passed"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


class FailureKind(enum.StrEnum):
    """Which part of the round trip broke."""

    UNEXPECTED_PARSE_ERROR = "unexpected_parse_error"
    ROUND_TRIP_MISMATCH = "round_trip_mismatch"
    CODEC_ERROR = "codec_error"
    DEADLINE_EXCEEDED = "deadline_exceeded"


class TrialStage(enum.StrEnum):
    """Step of the round trip a failure was raised from."""

    PARSE = "parse"
    FORMAT = "format"
    REPARSE = "reparse"
    EQUALS = "equals"
    # the whole round trip, for failures not tied to one step
    TRIAL = "trial"


# ── Records ──────────────────────────────────────────────────────────────────


class FailureDetail(HarnessBaseModel):
    """
    Everything needed to diagnose a failing trial without re-running it.

    For round-trip mismatches both descriptors are captured in their string
    and debug forms; for parse and codec errors the error type and message;
    for a slow trial the elapsed time against the deadline.
    """

    kind: FailureKind
    candidate: str
    stage: TrialStage
    error_type: str = ""
    message: str = ""
    formatted: str | None = None
    first_str: str | None = None
    first_repr: str | None = None
    second_str: str | None = None
    second_repr: str | None = None
    elapsed_ms: float | None = None
    deadline_ms: int | None = None


class RunReport(HarnessBaseModel):
    """Aggregate result of one property run."""

    run_id: str = Field(default_factory=new_id)
    seed: int
    status: RunStatus = RunStatus.PASSED
    quota: int = 0
    passes: int = 0
    discards: int = 0
    trials_attempted: int = 0
    shrink_calls: int = 0
    original_candidate: str | None = None
    shrunk_candidate: str | None = None
    minimal_candidate: str | None = None
    original_failure: FailureDetail | None = None
    failure: FailureDetail | None = None
    exhaustion_reason: str = ""
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.PASSED

    @property
    def duration_ms(self) -> int:
        if self.finished_at is None:
            return 0
        return int((self.finished_at - self.started_at).total_seconds() * 1000)
