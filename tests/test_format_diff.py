from __future__ import annotations

from flux_lsp.analysis.format_diff import (
    DiffLine,
    LineKind,
    Mismatch,
    apply_edits,
    format_edits,
    make_diff,
    split_lines,
)


def test_single_line_replacement() -> None:
    original = "one\ntwo\nthree\nfour\nfive\n"
    canonical = "one\ntwo\ntrois\nfour\nfive\n"
    assert make_diff(original, canonical) == [
        Mismatch(
            line_number=3,
            line_number_orig=3,
            lines=[
                DiffLine(LineKind.REMOVED, "three\n"),
                DiffLine(LineKind.ADDED, "trois\n"),
            ],
        )
    ]
    edits = format_edits(original, canonical)
    assert len(edits) == 1
    edit = edits[0]
    assert (edit.range.start.line, edit.range.start.character) == (2, 0)
    assert (edit.range.end.line, edit.range.end.character) == (3, 0)
    assert edit.new_text == "trois\n"
    assert apply_edits(original, edits) == canonical


def test_multiple_mismatches_do_not_overlap() -> None:
    original = "one\ntwo\nthree\nfour\nfive\nsix\nseven\n"
    canonical = "one\ntwo\ntrois\nfour\nfive\nsix\nsept\n"
    mismatches = make_diff(original, canonical)
    assert [(m.line_number, m.line_number_orig) for m in mismatches] == [(3, 3), (7, 7)]
    edits = format_edits(original, canonical)
    assert edits[0].range.end.line <= edits[1].range.start.line
    assert apply_edits(original, edits) == canonical


def test_insertions_and_deletions() -> None:
    original = "a = 1\n\n\nb = 2\nc = 3\n"
    canonical = "a = 1\n\nb = 2\nx = 0\nc = 3\n"
    assert apply_edits(original, format_edits(original, canonical)) == canonical


def test_trailing_newline_added() -> None:
    original = "one\ntwo\nthree\nfour\nfive"
    canonical = "one\ntwo\nthree\nfour\nfive\n"
    mismatches = make_diff(original, canonical)
    assert len(mismatches) == 1
    assert mismatches[0].line_number_orig == 5
    assert mismatches[0].removed == ["five"]
    assert mismatches[0].added == ["five\n"]
    assert apply_edits(original, format_edits(original, canonical)) == canonical


def test_trailing_newline_removed() -> None:
    original = "one\ntwo\nthree\nfour\nfive\n"
    canonical = "one\ntwo\nthree\nfour\nfive"
    assert apply_edits(original, format_edits(original, canonical)) == canonical


def test_identical_text_has_no_edits() -> None:
    assert format_edits("x = 1\n", "x = 1\n") == []
    assert format_edits("", "") == []


def test_split_lines_keeps_terminators() -> None:
    assert split_lines("a\nb") == ["a\n", "b"]
    assert split_lines("a\n") == ["a\n"]
    assert split_lines("") == []


def test_diff_keeps_longest_run_of_common_lines() -> None:
    original = "c\na\nb\na\nb\nb\nc\n"
    canonical = "a\nc\nb\nb\nb\n"
    mismatches = make_diff(original, canonical)
    assert sum(len(m.removed) for m in mismatches) == 3
    assert sum(len(m.added) for m in mismatches) == 1
    assert apply_edits(original, format_edits(original, canonical)) == canonical
