"""
platcheck -- Property-based round-trip harness for platform identifier strings.

Generates adversarial ``cpu-os-version`` strings, checks that
parse -> format -> parse is stable for a codec, and shrinks any failure to
a minimal reproducer.
"""

from platcheck.codec import Parsed, PlatformCodec, Rejected, load_codec, parse_result
from platcheck.oracle import RoundTripOracle
from platcheck.platform import GemPlatformCodec, Platform, PlatformError
from platcheck.runner import PropertyRunner
from platcheck.types import RunReport, RunStatus, TrialVerdict

__all__ = [
    "GemPlatformCodec",
    "Parsed",
    "Platform",
    "PlatformCodec",
    "PlatformError",
    "PropertyRunner",
    "Rejected",
    "RoundTripOracle",
    "RunReport",
    "RunStatus",
    "TrialVerdict",
    "load_codec",
    "parse_result",
]
