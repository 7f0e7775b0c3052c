"""
platcheck -- Candidate Generators

Hypothesis strategies that build adversarial platform strings:

  atoms()             one token from the fixed vocabularies
  fragment_trees()    atoms nested up to `max_depth` levels, 0..max_children wide
  fragments()         a fragment tree flattened by plain concatenation
  platform_strings()  0..5 fragments joined with "-"

The vocabulary is the adversarial corpus: known-good cpu and os names mixed
with malformed-but-plausible version tokens (double dots, leading and
trailing dots, the empty string). Nothing here filters candidates; the
oracle decides what is an expected rejection.
"""

from __future__ import annotations

from typing import Union

from hypothesis import strategies as st

SEPARATOR = "-"

CPU_NAMES: tuple[str, ...] = ("x86", "x86_64", "arm", "arm64", "i386", "i486", "aarch64")

# Duplicates are intentional: they weight the draw.
OS_NAMES: tuple[str, ...] = (
    "linux", "darwin", "freebsd", "mingw", "mswin", "mswin64", "java", "jruby",
    "aix", "cygwin", "macruby", "dalvik", "dotnet", "mingw", "mingw32", "mswin",
    "openbsd", "solaris", "wasi", "test_platform",
)

VERSION_LIKE: tuple[str, ...] = ("1", "1.0", "1..0", "1..", ".0", "1.", "..", "12299", "gnueabihf")

Atom = Union[str, int]
FragmentTree = Union[Atom, tuple["FragmentTree", ...]]


def atoms() -> st.SearchStrategy[Atom]:
    """One atom: empty, zero, a cpu, an os, or a version-like token."""
    # empty and zero first so shrinking heads towards them
    return st.one_of(
        st.just(""),
        st.just(0),
        st.sampled_from(CPU_NAMES),
        st.sampled_from(OS_NAMES),
        st.sampled_from(VERSION_LIKE),
    )


@st.composite
def fragment_trees(
    draw: st.DrawFn,
    leaves: st.SearchStrategy[Atom],
    max_depth: int = 4,
    max_children: int = 4,
) -> FragmentTree:
    """
    A leaf, or a tuple of 0..max_children subtrees.

    `max_depth` is spent one level per nesting, so recursion stops at depth
    zero where only leaves are drawn.
    """
    if max_depth <= 0 or draw(st.booleans()):
        return draw(leaves)
    children = draw(
        st.lists(
            fragment_trees(leaves, max_depth=max_depth - 1, max_children=max_children),
            min_size=0,
            max_size=max_children,
        )
    )
    return tuple(children)


def flatten_tree(tree: FragmentTree) -> str:
    """Concatenate the leaves of `tree` in order, with no separator."""
    if isinstance(tree, tuple):
        return "".join(flatten_tree(child) for child in tree)
    return str(tree)


def fragments(
    leaves: st.SearchStrategy[Atom] | None = None,
    *,
    max_depth: int = 4,
    max_children: int = 4,
) -> st.SearchStrategy[str]:
    leaves = atoms() if leaves is None else leaves
    return fragment_trees(leaves, max_depth=max_depth, max_children=max_children).map(
        flatten_tree
    )


def platform_strings(
    leaves: st.SearchStrategy[Atom] | None = None,
    *,
    min_fragments: int = 0,
    max_fragments: int = 5,
    max_depth: int = 4,
    max_children: int = 4,
) -> st.SearchStrategy[str]:
    """Candidate platform strings: fragments joined with the platform separator."""
    return st.lists(
        fragments(leaves, max_depth=max_depth, max_children=max_children),
        min_size=min_fragments,
        max_size=max_fragments,
    ).map(SEPARATOR.join)


def complexity(candidate: str) -> tuple[int, int]:
    """Sort key for reproducers: fragment count, then length."""
    fragment_count = candidate.count(SEPARATOR) + 1 if candidate else 0
    return (fragment_count, len(candidate))
