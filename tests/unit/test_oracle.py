"""
Unit tests for the round-trip oracle.

Uses the reference codec for the passing and rejecting verdicts and
MutatedCodec to inject each kind of defect the oracle must report.
"""

from __future__ import annotations

import pytest

from platcheck.errors import CodecError, RoundTripMismatch, UnexpectedParseError
from platcheck.oracle import DEFAULT_REJECTION_TEMPLATE, RoundTripOracle
from platcheck.platform import (
    GemPlatformCodec,
    MutatedCodec,
    Platform,
    PlatformError,
    parse_platform,
)
from platcheck.types import FailureKind, TrialStage, TrialVerdict


def _drop_version(platform: Platform) -> str:
    return "-".join(part for part in (platform.cpu, platform.os) if part)


def _rejecting(message: str):
    def parser(text: str) -> Platform:
        raise PlatformError(message)

    return parser


def _make_oracle(**overrides) -> RoundTripOracle:
    return RoundTripOracle(MutatedCodec(**overrides))


# ─── Verdicts ─────────────────────────────────────────────────────


class TestVerdicts:
    def test_pass(self):
        oracle = RoundTripOracle(GemPlatformCodec())
        assert oracle.check("x86_64-linux") == TrialVerdict.PASS

    def test_pass_with_version(self):
        oracle = RoundTripOracle(GemPlatformCodec())
        assert oracle.check("arm64-darwin-20") == TrialVerdict.PASS

    def test_malformed_version_token_passes(self):
        oracle = RoundTripOracle(GemPlatformCodec())
        assert oracle.check("1..0-x86") == TrialVerdict.PASS

    @pytest.mark.parametrize("candidate", ["", "-", "-linux", "--x86"])
    def test_empty_cpu_is_expected_rejection(self, candidate):
        oracle = RoundTripOracle(GemPlatformCodec())
        assert oracle.check(candidate) == TrialVerdict.EXPECTED_REJECTION

    def test_expected_rejection_message(self):
        oracle = RoundTripOracle(GemPlatformCodec())
        assert oracle.expected_rejection("-linux") == "empty cpu in platform '-linux'"
        assert DEFAULT_REJECTION_TEMPLATE == "empty cpu in platform {candidate!r}"

    def test_custom_rejection_template(self):
        def parser(text: str) -> Platform:
            raise PlatformError(f"no cpu: {text}")

        oracle = RoundTripOracle(MutatedCodec(parser=parser), rejection_template="no cpu: {candidate}")
        assert oracle.check("-x86") == TrialVerdict.EXPECTED_REJECTION


class TestClassify:
    def test_pass(self):
        oracle = RoundTripOracle(GemPlatformCodec())
        assert oracle.classify("x86_64-linux") == (TrialVerdict.PASS, None)

    def test_expected_rejection(self):
        oracle = RoundTripOracle(GemPlatformCodec())
        assert oracle.classify("-linux") == (TrialVerdict.EXPECTED_REJECTION, None)

    def test_failure_returns_the_error(self):
        oracle = _make_oracle(formatter=_drop_version)
        verdict, exc = oracle.classify("arm64-darwin-20")

        assert verdict == TrialVerdict.FAILURE
        assert isinstance(exc, RoundTripMismatch)
        assert exc.candidate == "arm64-darwin-20"

    def test_codec_error_is_a_failure(self):
        def parser(text: str) -> Platform:
            raise TypeError("unexpected")

        verdict, exc = _make_oracle(parser=parser).classify("x86-linux")
        assert verdict == TrialVerdict.FAILURE
        assert isinstance(exc, CodecError)



# ─── Unexpected parse errors ──────────────────────────────────────


class TestUnexpectedParseError:
    def test_different_message(self):
        oracle = _make_oracle(parser=_rejecting("unsupported cpu"))
        with pytest.raises(UnexpectedParseError) as exc_info:
            oracle.check("x86-linux")

        exc = exc_info.value
        assert exc.candidate == "x86-linux"
        assert exc.reason == "unsupported cpu"
        assert exc.error_type == "PlatformError"
        assert exc.stage == TrialStage.PARSE

    def test_empty_cpu_message_for_another_string(self):
        # same wording, wrong subject: not the tolerated rejection
        oracle = _make_oracle(parser=_rejecting("empty cpu in platform 'other'"))
        with pytest.raises(UnexpectedParseError):
            oracle.check("x86-linux")

    def test_formatted_output_rejected(self):
        oracle = _make_oracle(formatter=lambda platform: "")
        with pytest.raises(UnexpectedParseError) as exc_info:
            oracle.check("x86-linux")

        exc = exc_info.value
        assert exc.stage == TrialStage.REPARSE
        assert exc.parsed_text == ""
        detail = exc.detail()
        assert detail.kind == FailureKind.UNEXPECTED_PARSE_ERROR
        assert detail.formatted == ""
        assert detail.message == "empty cpu in platform ''"

    def test_parse_stage_detail_has_no_formatted(self):
        oracle = _make_oracle(parser=_rejecting("bad"))
        with pytest.raises(UnexpectedParseError) as exc_info:
            oracle.check("x")
        assert exc_info.value.detail().formatted is None


# ─── Round-trip mismatches ────────────────────────────────────────


class TestRoundTripMismatch:
    def test_dropped_version(self):
        oracle = _make_oracle(formatter=_drop_version)
        with pytest.raises(RoundTripMismatch) as exc_info:
            oracle.check("arm64-darwin-20")

        exc = exc_info.value
        assert exc.formatted == "arm64-darwin"
        assert exc.first_str == "arm64-darwin-20"
        assert exc.second_str == "arm64-darwin"
        assert exc.first_repr == repr(parse_platform("arm64-darwin-20"))

    def test_message_shows_both_descriptors(self):
        oracle = _make_oracle(formatter=_drop_version)
        with pytest.raises(RoundTripMismatch) as exc_info:
            oracle.check("arm64-darwin-20")

        message = str(exc_info.value)
        assert "From      'arm64-darwin-20'" in message
        assert "Expected: Platform(cpu='arm64', os='darwin', version='20')" in message
        assert "Got:      Platform(cpu='arm64', os='darwin', version=None)" in message

    def test_detail(self):
        oracle = _make_oracle(formatter=_drop_version)
        with pytest.raises(RoundTripMismatch) as exc_info:
            oracle.check("arm64-darwin-20")

        detail = exc_info.value.detail()
        assert detail.kind == FailureKind.ROUND_TRIP_MISMATCH
        assert detail.stage == TrialStage.EQUALS
        assert detail.candidate == "arm64-darwin-20"
        assert detail.second_repr == "Platform(cpu='arm64', os='darwin', version=None)"

    def test_candidate_without_version_still_passes(self):
        oracle = _make_oracle(formatter=_drop_version)
        assert oracle.check("x86_64-linux") == TrialVerdict.PASS


# ─── Codec errors ─────────────────────────────────────────────────


class TestCodecError:
    def test_parser_raises_non_domain_error(self):
        def parser(text: str) -> Platform:
            raise TypeError("unexpected")

        oracle = _make_oracle(parser=parser)
        with pytest.raises(CodecError) as exc_info:
            oracle.check("x86-linux")

        exc = exc_info.value
        assert exc.stage == TrialStage.PARSE
        assert isinstance(exc.cause, TypeError)
        assert exc.__cause__ is exc.cause

    def test_formatter_raises(self):
        def formatter(platform: Platform) -> str:
            raise ValueError("cannot format")

        oracle = _make_oracle(formatter=formatter)
        with pytest.raises(CodecError) as exc_info:
            oracle.check("x86-linux")

        detail = exc_info.value.detail()
        assert detail.kind == FailureKind.CODEC_ERROR
        assert detail.stage == TrialStage.FORMAT
        assert detail.error_type == "ValueError"
        assert detail.message == "cannot format"

    def test_equals_raises(self):
        class BrokenEquals(GemPlatformCodec):
            def equals(self, left: Platform, right: Platform) -> bool:
                raise RuntimeError("no equality")

        oracle = RoundTripOracle(BrokenEquals())
        with pytest.raises(CodecError) as exc_info:
            oracle.check("x86-linux")
        assert exc_info.value.stage == TrialStage.EQUALS
