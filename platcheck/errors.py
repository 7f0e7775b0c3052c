"""
platcheck -- Harness Error Hierarchy

All exceptions raised by the round-trip harness.

  OracleFailure subclasses  -> a defect in the codec under test -> run FAILED
  GeneratorExhaustedError   -> the generator skews too invalid  -> run EXHAUSTED
  ConfigError               -> the harness could not be configured

The one tolerated codec rejection (empty cpu) never becomes an exception
here; the oracle classifies it as a discard.
"""

from __future__ import annotations

from platcheck.types import FailureDetail, FailureKind, TrialStage


class HarnessError(RuntimeError):
    """Base for all harness errors."""


class OracleFailure(HarnessError):
    """
    A candidate string exposed a defect in the codec under test.

    Always carries the candidate and a FailureDetail so the report can be
    written without replaying the trial.
    """

    kind: FailureKind

    def __init__(self, message: str, *, candidate: str, stage: TrialStage) -> None:
        super().__init__(message)
        self.candidate = candidate
        self.stage = stage

    def detail(self) -> FailureDetail:
        return FailureDetail(
            kind=self.kind,
            candidate=self.candidate,
            stage=self.stage,
            error_type=type(self).__name__,
            message=str(self),
        )


class UnexpectedParseError(OracleFailure):
    """
    The codec rejected a string with anything other than the whitelisted
    empty-cpu message, or rejected its own formatted output.
    """

    kind = FailureKind.UNEXPECTED_PARSE_ERROR

    def __init__(
        self,
        candidate: str,
        *,
        reason: str,
        error_type: str,
        parsed_text: str,
        stage: TrialStage = TrialStage.PARSE,
    ) -> None:
        super().__init__(
            f"{error_type}: {reason} (while parsing {parsed_text!r}, from {candidate!r})",
            candidate=candidate,
            stage=stage,
        )
        self.reason = reason
        self.error_type = error_type
        self.parsed_text = parsed_text

    def detail(self) -> FailureDetail:
        return FailureDetail(
            kind=self.kind,
            candidate=self.candidate,
            stage=self.stage,
            error_type=self.error_type,
            message=self.reason,
            formatted=self.parsed_text if self.stage == TrialStage.REPARSE else None,
        )


class RoundTripMismatch(OracleFailure):
    """parse(format(parse(s))) is not equal to parse(s)."""

    kind = FailureKind.ROUND_TRIP_MISMATCH

    def __init__(
        self,
        candidate: str,
        *,
        formatted: str,
        first_str: str,
        first_repr: str,
        second_str: str,
        second_repr: str,
    ) -> None:
        super().__init__(
            f"From      {candidate!r}\n"
            f"Expected: {first_repr}\n"
            f"          {first_str}\n"
            f"Got:      {second_repr}\n"
            f"          {second_str}",
            candidate=candidate,
            stage=TrialStage.EQUALS,
        )
        self.formatted = formatted
        self.first_str = first_str
        self.first_repr = first_repr
        self.second_str = second_str
        self.second_repr = second_repr

    def detail(self) -> FailureDetail:
        return FailureDetail(
            kind=self.kind,
            candidate=self.candidate,
            stage=self.stage,
            error_type=type(self).__name__,
            message=str(self),
            formatted=self.formatted,
            first_str=self.first_str,
            first_repr=self.first_repr,
            second_str=self.second_str,
            second_repr=self.second_repr,
        )


class CodecError(OracleFailure):
    """
    The codec raised something other than its domain error, or `format` /
    `equals` raised at all. Both are total for parsed descriptors.
    """

    kind = FailureKind.CODEC_ERROR

    def __init__(self, candidate: str, *, stage: TrialStage, cause: Exception) -> None:
        super().__init__(
            f"{type(cause).__name__} during {stage.value} of {candidate!r}: {cause}",
            candidate=candidate,
            stage=stage,
        )
        self.cause = cause

    def detail(self) -> FailureDetail:
        return FailureDetail(
            kind=self.kind,
            candidate=self.candidate,
            stage=self.stage,
            error_type=type(self.cause).__name__,
            message=str(self.cause),
        )


class TrialDeadlineExceeded(OracleFailure):
    """One round trip took longer than the configured per-trial deadline."""

    kind = FailureKind.DEADLINE_EXCEEDED

    def __init__(self, candidate: str, *, elapsed_ms: float, deadline_ms: int) -> None:
        super().__init__(
            f"trial took {elapsed_ms:.1f}ms, over the {deadline_ms}ms deadline ({candidate!r})",
            candidate=candidate,
            stage=TrialStage.TRIAL,
        )
        self.elapsed_ms = elapsed_ms
        self.deadline_ms = deadline_ms

    def detail(self) -> FailureDetail:
        return FailureDetail(
            kind=self.kind,
            candidate=self.candidate,
            stage=self.stage,
            error_type=type(self).__name__,
            message=str(self),
            elapsed_ms=self.elapsed_ms,
            deadline_ms=self.deadline_ms,
        )


class GeneratorExhaustedError(HarnessError):
    """
    Too many candidates were discarded before the pass quota was reached.

    A harness configuration problem (the vocabulary skews too invalid), not
    a correctness bug in the codec.
    """

    def __init__(self, reason: str, *, passes: int, discards: int) -> None:
        super().__init__(reason)
        self.reason = reason
        self.passes = passes
        self.discards = discards


class ConfigError(HarnessError):
    """The configuration file or codec path could not be loaded."""
