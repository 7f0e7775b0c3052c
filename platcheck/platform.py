"""
platcheck -- Reference Platform Codec

A platform string is ``cpu-os[-version]``, following the RubyGems
conventions: ``x86_64-linux``, ``arm64-darwin-20``, ``x86-mswin32-60``.

Parsing rules
-------------
1. Trailing ``-`` are dropped; the rest splits at the first ``-`` into a
   cpu token and an os string.
2. An empty cpu token is the only rejection:
   ``empty cpu in platform '<input>'``.
3. No ``-`` at all is the legacy form: the token is the os string and the
   cpu is unknown (``jruby``, ``mswin32``).
4. ``i386`` .. ``i986`` all normalize to ``x86``.
5. The os string is matched against an ordered OS table, which also pulls
   out the version. Anything unrecognised is ``unknown``.

`format` joins the present fields with ``-``; equality is field equality.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

SEPARATOR = "-"

_I86 = re.compile(r"i\d86", re.ASCII)
_MSWIN = re.compile(r"(mswin\d+)(?:[_-](\d+))?", re.ASCII)


class PlatformError(ValueError):
    """The string cannot be parsed as a platform."""


class Platform(BaseModel):
    """Parsed platform descriptor."""

    model_config = ConfigDict(frozen=True)

    cpu: str | None = None
    os: str
    version: str | None = None

    def to_tuple(self) -> tuple[str | None, str, str | None]:
        return (self.cpu, self.os, self.version)

    def __str__(self) -> str:
        return SEPARATOR.join(part for part in self.to_tuple() if part is not None)

    def __repr__(self) -> str:
        return f"Platform(cpu={self.cpu!r}, os={self.os!r}, version={self.version!r})"


# ── OS table ─────────────────────────────────────────────────────────────────

# Ordered (pattern, os) rules, first match wins. A None os means the first
# capture group is the os name and the second the version; otherwise the
# only group, when it matched, is the version. Patterns are searched, not
# anchored, unless they say otherwise.
_OS_RULES: list[tuple[re.Pattern[str], str | None]] = [
    (re.compile(r"aix-?(\d+)?", re.ASCII), "aix"),
    (re.compile(r"cygwin"), "cygwin"),
    (re.compile(r"darwin-?(\d+)?", re.ASCII), "darwin"),
    (re.compile(r"^macruby$"), "macruby"),
    (re.compile(r"^macruby-?(\d+(?:\.\d+)*)?", re.ASCII), "macruby"),
    (re.compile(r"freebsd-?(\d+)?", re.ASCII), "freebsd"),
    (re.compile(r"^(?:java|jruby)$"), "java"),
    (re.compile(r"^java-?(\d+(?:\.\d+)*)?", re.ASCII), "java"),
    (re.compile(r"^dalvik-?(\d+)?$", re.ASCII), "dalvik"),
    (re.compile(r"^dotnet$"), "dotnet"),
    (re.compile(r"^dotnet-?(\d+(?:\.\d+)*)?", re.ASCII), "dotnet"),
    (re.compile(r"linux-?(\w+)?", re.ASCII), "linux"),
    (re.compile(r"mingw32"), "mingw32"),
    (re.compile(r"mingw-?(\w+)?", re.ASCII), "mingw"),
    (_MSWIN, None),
    (re.compile(r"netbsdelf"), "netbsdelf"),
    (re.compile(r"openbsd-?(\d+\.\d+)?", re.ASCII), "openbsd"),
    (re.compile(r"solaris-?(\d+\.\d+)?", re.ASCII), "solaris"),
    (re.compile(r"wasi"), "wasi"),
    # test platforms
    (re.compile(r"^(\w+_platform)-?(\d+)?", re.ASCII), None),
]


def match_os(text: str) -> tuple[str, str | None]:
    """Return ``(os, version)`` for the os part of a platform string."""
    for pattern, os_name in _OS_RULES:
        m = pattern.search(text)
        if m is None:
            continue
        if os_name is None:
            return m.group(1), m.group(2)
        return os_name, m.group(1) if m.re.groups else None
    return "unknown", None


def normalize_cpu(cpu: str) -> str:
    return "x86" if _I86.search(cpu) else cpu


# ── Codec ────────────────────────────────────────────────────────────────────


def parse_platform(text: str) -> Platform:
    """Parse a platform string. Raises PlatformError for an empty cpu."""
    stripped = text.rstrip(SEPARATOR)
    cpu, sep, os_text = stripped.partition(SEPARATOR)
    if not cpu:
        raise PlatformError(f"empty cpu in platform {text!r}")

    if not sep:
        # legacy form: the single token names the os
        os_name, version = match_os(cpu)
        legacy_cpu = "x86" if os_name.startswith("mswin") and os_name.endswith("32") else None
        if legacy_cpu is None:
            version = None
        return Platform(cpu=legacy_cpu, os=os_name, version=version)

    os_name, version = match_os(os_text)
    return Platform(cpu=normalize_cpu(cpu), os=os_name, version=version)


def format_platform(platform: Platform) -> str:
    return str(platform)


class GemPlatformCodec:
    """The reference codec: RubyGems-style platform strings."""

    def parse(self, text: str) -> Platform:
        return parse_platform(text)

    def format(self, descriptor: Platform) -> str:
        return format_platform(descriptor)

    def equals(self, left: Platform, right: Platform) -> bool:
        return left == right


class MutatedCodec(GemPlatformCodec):
    """
    The reference codec with a substituted formatter or parser.

    Used to check that the harness catches defects: a formatter that drops
    the version, a parser that rejects with the wrong message, and so on.
    """

    def __init__(
        self,
        *,
        formatter: Callable[[Platform], str] | None = None,
        parser: Callable[[str], Platform] | None = None,
    ) -> None:
        self._formatter = formatter
        self._parser = parser

    def parse(self, text: str) -> Platform:
        if self._parser is not None:
            return self._parser(text)
        return super().parse(text)

    def format(self, descriptor: Platform) -> str:
        if self._formatter is not None:
            return self._formatter(descriptor)
        return super().format(descriptor)
