from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from .errors import DuplicateSectionError, MalformedMarkerError, MissingSourceError, SourceReadError
from .io_utils import read_text
from .markers import MarkerPatterns, Section, duplicate_names, find_sections, overlapping_sections


logger = logging.getLogger(__name__)

SourceReader = Callable[[str], str]
LogSink = Callable[[str, str], None]


def splice_section(text: str, offset: int, section: Section, content: str) -> tuple[str, int]:
    """Replace one section body and return the new text and running offset.

    ``section`` positions refer to the original text; ``offset`` is the total
    length change of every splice applied before this one.
    """
    begin_pos = section.start + offset
    end_pos = section.end + offset

    end_of_begin_line = text.find("\n", begin_pos)
    if end_of_begin_line == -1:
        raise MalformedMarkerError(section.name)

    # Keep the end marker's whole line, including any leading comment syntax.
    start_of_end_line = text.rfind("\n", 0, end_pos) + 1
    if start_of_end_line <= end_of_begin_line:
        raise MalformedMarkerError(section.name, "end marker on the begin line")

    before = text[: end_of_begin_line + 1]
    after = text[start_of_end_line:]
    out = before + "\n" + content + "\n\n" + after
    return out, offset + len(out) - len(text)


def replace_sections(
    text: str,
    sections: Iterable[Section],
    *,
    read_source: SourceReader = read_text,
    log_sink: LogSink | None = None,
) -> str:
    sections = list(sections)
    overlaps = overlapping_sections(sections)
    if overlaps:
        outer, inner = overlaps[0]
        raise MalformedMarkerError(inner.name, f"overlaps section {outer.name}")

    out = text
    offset = 0
    for s in sections:
        if not s.source:
            raise MissingSourceError(s.name)
        try:
            content = read_source(s.source).strip()
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(s.name, s.source, str(e)) from e

        if log_sink is not None:
            log_sink(s.name, s.source)

        out, offset = splice_section(out, offset, s, content)
    return out


def sync_text(
    text: str,
    patterns: MarkerPatterns,
    *,
    read_source: SourceReader = read_text,
    log_sink: LogSink | None = None,
    strict: bool = False,
) -> str:
    sections = find_sections(text, patterns)
    if not sections:
        return text

    for name, n in sorted(duplicate_names(text, patterns).items()):
        if strict:
            raise DuplicateSectionError(name, n)
        logger.warning("section %s is declared %d times; pairing may be ambiguous", name, n)

    return replace_sections(text, sections, read_source=read_source, log_sink=log_sink)
