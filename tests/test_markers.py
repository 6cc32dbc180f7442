from __future__ import annotations

import pytest

from sectsync.errors import UnmatchedSectionError
from sectsync.markers import (
    duplicate_names,
    find_sections,
    has_any_markers,
    make_patterns,
    overlapping_sections,
    validate_markers,
)


DEFAULT = make_patterns()


@pytest.mark.parametrize(
    "begin,end,line",
    [
        ("BEGIN SECTION", "END SECTION", "BEGIN SECTION test"),
        ("START", "STOP", "START mysection"),
        ("<!-- BEGIN", "<!-- END", "<!-- BEGIN test"),
        ("[[ START", "[[ STOP", "[[ START x file=a.txt ]]"),
    ],
)
def test_make_patterns_matches_begin_line(begin: str, end: str, line: str) -> None:
    patterns = make_patterns(begin, end)
    assert patterns.begin_re.search(line) is not None


def test_make_patterns_escapes_prefix() -> None:
    patterns = make_patterns("a.b", "c.d")
    assert patterns.begin_re.search("a.b x") is not None
    assert patterns.begin_re.search("axb x") is None


def test_make_patterns_rejects_empty_prefix() -> None:
    with pytest.raises(ValueError):
        make_patterns("", "END SECTION")
    with pytest.raises(ValueError):
        make_patterns("BEGIN SECTION", "  ")


def test_single_section() -> None:
    text = (
        "<!-- BEGIN SECTION test file=test.txt -->\n"
        "content here\n"
        "<!-- END SECTION test -->"
    )
    sections = find_sections(text, DEFAULT)
    assert len(sections) == 1
    s = sections[0]
    assert s.name == "test"
    assert s.source == "test.txt"
    assert s.start == text.index("BEGIN")
    assert s.end == text.index("END SECTION")
    assert s.start < s.end


def test_multiple_sections_in_document_order() -> None:
    text = (
        "<!-- BEGIN SECTION first file=a.txt -->\n"
        "content1\n"
        "<!-- END SECTION first -->\n"
        "\n"
        "<!-- BEGIN SECTION second file=b.txt -->\n"
        "content2\n"
        "<!-- END SECTION second -->"
    )
    sections = find_sections(text, DEFAULT)
    assert [s.name for s in sections] == ["first", "second"]
    assert [s.source for s in sections] == ["a.txt", "b.txt"]


def test_missing_end_marker_raises() -> None:
    text = "<!-- BEGIN SECTION test file=test.txt -->\ncontent here"
    with pytest.raises(UnmatchedSectionError) as exc:
        find_sections(text, DEFAULT)
    assert exc.value.name == "test"
    assert "test" in str(exc.value)


def test_end_marker_before_begin_does_not_count() -> None:
    text = "END SECTION a\nBEGIN SECTION a file=x\nbody\n"
    with pytest.raises(UnmatchedSectionError):
        find_sections(text, DEFAULT)


def test_name_with_hyphen_and_underscore() -> None:
    text = (
        "<!-- BEGIN SECTION test-name_123 file=test.txt -->\n"
        "content\n"
        "<!-- END SECTION test-name_123 -->"
    )
    sections = find_sections(text, DEFAULT)
    assert sections[0].name == "test-name_123"


def test_names_are_case_sensitive() -> None:
    text = "BEGIN SECTION Intro file=a\nx\nEND SECTION intro\n"
    with pytest.raises(UnmatchedSectionError):
        find_sections(text, DEFAULT)


def test_begin_without_file_has_empty_source() -> None:
    text = "BEGIN SECTION a\nold\nEND SECTION a\n"
    sections = find_sections(text, DEFAULT)
    assert sections[0].source == ""


def test_source_stops_at_space_angle_bracket_and_newline() -> None:
    text = (
        "<!-- BEGIN SECTION a file=docs/a.md-->\nx\n<!-- END SECTION a -->\n"
        "# START b file=f\nold\n# STOP b\n"
    )
    assert find_sections(text, DEFAULT)[0].source == "docs/a.md--"
    custom = find_sections(text, make_patterns("# START", "# STOP"))
    assert custom[0].source == "f"


def test_forward_pairing_skips_unrelated_sections() -> None:
    text = (
        "BEGIN SECTION outer file=o\n"
        "BEGIN SECTION inner file=i\n"
        "END SECTION inner\n"
        "END SECTION outer\n"
    )
    sections = find_sections(text, DEFAULT)
    outer, inner = sections
    assert outer.end == text.index("END SECTION outer")
    assert inner.end == text.index("END SECTION inner")


def test_same_name_pairs_with_nearest_next_end() -> None:
    text = (
        "BEGIN SECTION a file=1\n"
        "END SECTION a\n"
        "BEGIN SECTION a file=2\n"
        "END SECTION a\n"
    )
    first, second = find_sections(text, DEFAULT)
    assert first.end == text.index("END SECTION a")
    assert second.end == text.rindex("END SECTION a")


def test_found_names_are_begins_with_a_later_end() -> None:
    text = (
        "BEGIN SECTION a file=x\nEND SECTION a\n"
        "BEGIN SECTION b file=y\nEND SECTION b\n"
        "BEGIN SECTION a file=z\nEND SECTION a\n"
    )
    assert {s.name for s in find_sections(text, DEFAULT)} == {"a", "b"}


def test_no_markers() -> None:
    assert find_sections("plain text\n", DEFAULT) == []
    assert not has_any_markers("plain text\n", DEFAULT)


def test_duplicate_names() -> None:
    text = "BEGIN SECTION a\nEND SECTION a\nBEGIN SECTION a\nEND SECTION a\nBEGIN SECTION b\n"
    assert duplicate_names(text, DEFAULT) == {"a": 2}


def test_validate_markers_reports_every_problem() -> None:
    text = (
        "BEGIN SECTION a file=x\nEND SECTION a\n"
        "BEGIN SECTION nosrc\nEND SECTION nosrc\n"
        "BEGIN SECTION a file=y\n"
        "BEGIN SECTION open file=z\n"
    )
    problems = validate_markers(text, DEFAULT)
    kinds = sorted((p.kind, p.name) for p in problems)
    assert kinds == [
        ("duplicate", "a"),
        ("missing_source", "nosrc"),
        ("unmatched", "a"),
        ("unmatched", "open"),
    ]
    unmatched_open = [p for p in problems if p.name == "open"][0]
    assert "line 6" in unmatched_open.message


def test_validate_markers_clean_document() -> None:
    text = "BEGIN SECTION a file=x\nbody\nEND SECTION a\n"
    assert validate_markers(text, DEFAULT) == []


def test_overlapping_sections() -> None:
    text = (
        "BEGIN SECTION outer file=o\n"
        "BEGIN SECTION inner file=i\n"
        "END SECTION inner\n"
        "END SECTION outer\n"
        "BEGIN SECTION after file=a\n"
        "END SECTION after\n"
    )
    overlaps = overlapping_sections(find_sections(text, DEFAULT))
    assert [(outer.name, inner.name) for outer, inner in overlaps] == [("outer", "inner")]


def test_sequential_sections_do_not_overlap() -> None:
    text = (
        "BEGIN SECTION a file=1\nEND SECTION a\n"
        "BEGIN SECTION a file=2\nEND SECTION a\n"
    )
    assert overlapping_sections(find_sections(text, DEFAULT)) == []


def test_validate_markers_reports_overlap() -> None:
    text = (
        "BEGIN SECTION outer file=o\n"
        "BEGIN SECTION inner file=i\n"
        "END SECTION inner\n"
        "END SECTION outer\n"
    )
    problems = validate_markers(text, DEFAULT)
    assert [(p.kind, p.name) for p in problems] == [("overlap", "inner")]
    assert "line 2" in problems[0].message
    assert "overlaps section outer (line 1)" in problems[0].message
