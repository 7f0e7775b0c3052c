"""
platcheck -- Round-Trip Oracle

For one candidate string:

  1. parse(candidate)        -> first descriptor, or a rejection
  2. format(first)           -> formatted
  3. parse(formatted)        -> second descriptor
  4. equals(first, second)

Exactly one rejection is tolerated: the codec's empty-cpu message for this
exact candidate. It is compared as a full string built from the candidate,
never just by error type, so unrelated rejections cannot hide behind it.
Everything else raises an OracleFailure.

The oracle is a pure function of its input plus the codec: no retries, no
state between calls.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import structlog

from platcheck.codec import Parsed, ParseResult, PlatformCodec, Rejected, parse_result
from platcheck.errors import CodecError, OracleFailure, RoundTripMismatch, UnexpectedParseError
from platcheck.types import TrialStage, TrialVerdict

logger = structlog.get_logger(system="platcheck.oracle")

DEFAULT_REJECTION_TEMPLATE = "empty cpu in platform {candidate!r}"

T = TypeVar("T")


class RoundTripOracle:
    """Checks parse -> format -> parse stability for one codec."""

    def __init__(
        self,
        codec: PlatformCodec[Any],
        *,
        rejection_template: str = DEFAULT_REJECTION_TEMPLATE,
    ) -> None:
        self._codec = codec
        self._template = rejection_template

    def expected_rejection(self, candidate: str) -> str:
        """The one rejection message tolerated for `candidate`."""
        return self._template.format(candidate=candidate)

    def check(self, candidate: str) -> TrialVerdict:
        """
        Run the round trip on `candidate`.

        Returns PASS or EXPECTED_REJECTION; raises UnexpectedParseError,
        RoundTripMismatch or CodecError on a defect.
        """
        match self._parse(candidate, candidate, TrialStage.PARSE):
            case Rejected(reason=reason) if reason == self.expected_rejection(candidate):
                logger.debug("trial_rejected", candidate=candidate)
                return TrialVerdict.EXPECTED_REJECTION
            case Rejected(reason=reason, error_type=error_type):
                raise UnexpectedParseError(
                    candidate,
                    reason=reason,
                    error_type=error_type,
                    parsed_text=candidate,
                )
            case Parsed(descriptor=first):
                pass

        formatted = self._guard(candidate, TrialStage.FORMAT, self._codec.format, first)

        match self._parse(candidate, formatted, TrialStage.REPARSE):
            case Rejected(reason=reason, error_type=error_type):
                # formatted output must always parse, even the empty-cpu case
                raise UnexpectedParseError(
                    candidate,
                    reason=reason,
                    error_type=error_type,
                    parsed_text=formatted,
                    stage=TrialStage.REPARSE,
                )
            case Parsed(descriptor=second):
                pass

        if not self._guard(candidate, TrialStage.EQUALS, self._codec.equals, first, second):
            raise RoundTripMismatch(
                candidate,
                formatted=formatted,
                first_str=str(first),
                first_repr=repr(first),
                second_str=str(second),
                second_repr=repr(second),
            )
        return TrialVerdict.PASS

    def classify(self, candidate: str) -> tuple[TrialVerdict, OracleFailure | None]:
        """Like check(), but a failure comes back as FAILURE plus the error."""
        try:
            return self.check(candidate), None
        except OracleFailure as exc:
            return TrialVerdict.FAILURE, exc

    # ── Private ─────────────────────────────────────────────────────────────

    def _parse(self, candidate: str, text: str, stage: TrialStage) -> ParseResult:
        return self._guard(candidate, stage, parse_result, self._codec, text)

    def _guard(
        self,
        candidate: str,
        stage: TrialStage,
        fn: Callable[..., T],
        *args: Any,
    ) -> T:
        try:
            return fn(*args)
        except Exception as exc:
            raise CodecError(candidate, stage=stage, cause=exc) from exc
