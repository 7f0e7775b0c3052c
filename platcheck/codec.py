"""
platcheck -- Codec Interface

The harness consumes the parser/formatter under test only through the
PlatformCodec protocol. `parse_result` turns the codec's domain error into a
tagged result so the oracle can match on it instead of catching exceptions.

A codec's domain error must derive from ValueError. Anything else escaping
`parse` is not a rejection and propagates.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from platcheck.errors import ConfigError

D = TypeVar("D")


class PlatformCodec(Protocol[D]):
    """Parser/formatter pair for one platform string grammar."""

    def parse(self, text: str) -> D: ...

    def format(self, descriptor: D) -> str: ...

    def equals(self, left: D, right: D) -> bool: ...


@dataclass(frozen=True)
class Parsed(Generic[D]):
    descriptor: D


@dataclass(frozen=True)
class Rejected:
    reason: str
    error_type: str


ParseResult = Parsed[Any] | Rejected


def parse_result(codec: PlatformCodec[Any], text: str) -> ParseResult:
    """Parse `text`, mapping the codec's domain error to Rejected."""
    try:
        return Parsed(codec.parse(text))
    except ValueError as exc:
        return Rejected(reason=str(exc), error_type=type(exc).__name__)


def load_codec(path: str) -> PlatformCodec[Any]:
    """
    Resolve a codec from a dotted path.

    Accepts ``package.module:attr`` or ``package.module.attr``. Classes are
    instantiated with no arguments; other objects are returned as-is.
    """
    module_name, sep, attr = path.partition(":")
    if not sep:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ConfigError(f"Invalid codec path: {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Cannot import codec module {module_name!r}: {exc}") from exc

    try:
        target = getattr(module, attr)
    except AttributeError as exc:
        raise ConfigError(f"Module {module_name!r} has no attribute {attr!r}") from exc

    codec = target() if isinstance(target, type) else target
    for method in ("parse", "format", "equals"):
        if not callable(getattr(codec, method, None)):
            raise ConfigError(f"Codec {path!r} does not provide {method}()")
    return codec
