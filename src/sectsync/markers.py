"""Section markers: pattern construction, discovery and pairing.

Marker format (prefixes are configurable)::

    BEGIN SECTION <name> file=<path>
    ... managed content ...
    END SECTION <name>

The prefix may sit anywhere on its line, so markers can be wrapped in
comment syntax such as ``<!-- BEGIN SECTION intro file=intro.md -->``.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass

from .constants import DEFAULT_BEGIN, DEFAULT_END, NAME_PATTERN, SOURCE_PATTERN
from .errors import UnmatchedSectionError


@dataclass(frozen=True)
class MarkerPatterns:
    begin: str
    end: str
    begin_re: re.Pattern[str]
    end_re: re.Pattern[str]


@dataclass(frozen=True)
class Section:
    name: str
    start: int  # begin marker match start, in the original text
    end: int  # paired end marker match start, in the original text
    source: str = ""


@dataclass(frozen=True)
class MarkerProblem:
    kind: str  # unmatched|missing_source|overlap|duplicate
    name: str
    message: str


def make_patterns(begin: str = DEFAULT_BEGIN, end: str = DEFAULT_END) -> MarkerPatterns:
    """Compile the begin/end matchers for the given marker prefixes.

    Prefixes are matched literally. The begin matcher captures the section
    name and an optional ``file=`` path; the end matcher captures the name.
    """
    if not (begin or "").strip():
        raise ValueError("begin marker prefix cannot be empty")
    if not (end or "").strip():
        raise ValueError("end marker prefix cannot be empty")

    begin_re = re.compile(
        re.escape(begin) + f" ({NAME_PATTERN})(?: file=({SOURCE_PATTERN}))?",
        re.MULTILINE,
    )
    end_re = re.compile(re.escape(end) + f" ({NAME_PATTERN})", re.MULTILINE)
    return MarkerPatterns(begin=begin, end=end, begin_re=begin_re, end_re=end_re)


def _pair_end(
    begin: re.Match[str], ends: list[re.Match[str]]
) -> re.Match[str] | None:
    # Forward search: the first same-name end starting after this begin.
    # No nesting, so an unrelated section in between does not matter.
    name = begin.group(1)
    for e in ends:
        if e.group(1) == name and e.start() > begin.end():
            return e
    return None


def find_sections(text: str, patterns: MarkerPatterns) -> list[Section]:
    """Return every section in ``text`` in the order of its begin markers.

    Raises ``UnmatchedSectionError`` for the first begin marker that has no
    same-named end marker after it.
    """
    begins = list(patterns.begin_re.finditer(text))
    ends = list(patterns.end_re.finditer(text))

    sections: list[Section] = []
    for b in begins:
        e = _pair_end(b, ends)
        if e is None:
            raise UnmatchedSectionError(b.group(1), patterns.end)
        sections.append(
            Section(name=b.group(1), start=b.start(), end=e.start(), source=b.group(2) or "")
        )
    return sections


def overlapping_sections(sections: list[Section]) -> list[tuple[Section, Section]]:
    """Pair each section with an earlier one whose body it starts inside.

    Sections do not nest: a later splice would land in text an earlier one
    already rewrote.
    """
    overlaps: list[tuple[Section, Section]] = []
    widest: Section | None = None
    for s in sections:
        if widest is not None and s.start < widest.end:
            overlaps.append((widest, s))
        if widest is None or s.end > widest.end:
            widest = s
    return overlaps


def has_any_markers(text: str, patterns: MarkerPatterns) -> bool:
    return patterns.begin_re.search(text) is not None


def duplicate_names(text: str, patterns: MarkerPatterns) -> dict[str, int]:
    counts = Counter(m.group(1) for m in patterns.begin_re.finditer(text))
    return {name: n for name, n in counts.items() if n > 1}


def validate_markers(text: str, patterns: MarkerPatterns) -> list[MarkerProblem]:
    """Collect marker problems without raising.

    Unlike ``find_sections`` this reports every unmatched begin marker, not
    just the first one.
    """
    problems: list[MarkerProblem] = []
    ends = list(patterns.end_re.finditer(text))
    paired: list[Section] = []

    for b in patterns.begin_re.finditer(text):
        name = b.group(1)
        e = _pair_end(b, ends)
        if e is not None:
            paired.append(Section(name=name, start=b.start(), end=e.start(), source=b.group(2) or ""))
        else:
            problems.append(
                MarkerProblem(
                    kind="unmatched",
                    name=name,
                    message=f"no {patterns.end} for {name} (line {line_number(text, b.start())})",
                )
            )
        if not b.group(2):
            problems.append(
                MarkerProblem(
                    kind="missing_source",
                    name=name,
                    message=f"section {name} has no file= source (line {line_number(text, b.start())})",
                )
            )

    for outer, inner in overlapping_sections(paired):
        problems.append(
            MarkerProblem(
                kind="overlap",
                name=inner.name,
                message=f"section {inner.name} (line {line_number(text, inner.start)}) overlaps section {outer.name} (line {line_number(text, outer.start)})",
            )
        )

    for name, n in sorted(duplicate_names(text, patterns).items()):
        problems.append(
            MarkerProblem(
                kind="duplicate",
                name=name,
                message=f"section {name} is declared {n} times; the first {patterns.end} {name} after each begin wins",
            )
        )
    return problems


def line_number(text: str, pos: int) -> int:
    return text.count("\n", 0, pos) + 1
