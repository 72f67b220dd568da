from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple

from lsprotocol.types import Position, Range, TextEdit


class LineKind(str, Enum):
    REMOVED = "removed"
    ADDED = "added"


@dataclass(frozen=True)
class DiffLine:
    kind: LineKind
    text: str


@dataclass
class Mismatch:
    # 1-based line numbers in the canonical and in the original text.
    line_number: int
    line_number_orig: int
    lines: List[DiffLine] = field(default_factory=list)

    @property
    def removed(self) -> List[str]:
        return [line.text for line in self.lines if line.kind is LineKind.REMOVED]

    @property
    def added(self) -> List[str]:
        return [line.text for line in self.lines if line.kind is LineKind.ADDED]

    def to_edit(self) -> TextEdit:
        start = self.line_number_orig - 1
        return TextEdit(
            range=Range(
                start=Position(line=start, character=0),
                end=Position(line=start + len(self.removed), character=0),
            ),
            new_text="".join(self.added),
        )


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` keeping terminators; a final unterminated line is kept."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _common_lines(before: Sequence[str], after: Sequence[str]) -> List[Tuple[int, int]]:
    """Index pairs of one longest common subsequence of ``before`` and ``after``."""
    rows, cols = len(before), len(after)
    # lengths[i][j] is the LCS length of before[i:] and after[j:].
    lengths = [[0] * (cols + 1) for _ in range(rows + 1)]
    for i in range(rows - 1, -1, -1):
        for j in range(cols - 1, -1, -1):
            if before[i] == after[j]:
                lengths[i][j] = lengths[i + 1][j + 1] + 1
            else:
                lengths[i][j] = max(lengths[i + 1][j], lengths[i][j + 1])
    pairs: List[Tuple[int, int]] = []
    i = j = 0
    while i < rows and j < cols:
        if before[i] == after[j]:
            pairs.append((i, j))
            i += 1
            j += 1
        elif lengths[i + 1][j] >= lengths[i][j + 1]:
            i += 1
        else:
            j += 1
    return pairs


def make_diff(original: str, canonical: str) -> List[Mismatch]:
    before = split_lines(original)
    after = split_lines(canonical)
    mismatches: List[Mismatch] = []
    i = j = 0
    for bi, aj in _common_lines(before, after) + [(len(before), len(after))]:
        if bi > i or aj > j:
            mismatch = Mismatch(line_number=j + 1, line_number_orig=i + 1)
            mismatch.lines.extend(DiffLine(LineKind.REMOVED, line) for line in before[i:bi])
            mismatch.lines.extend(DiffLine(LineKind.ADDED, line) for line in after[j:aj])
            mismatches.append(mismatch)
        i, j = bi + 1, aj + 1
    return mismatches


def format_edits(original: str, canonical: str) -> List[TextEdit]:
    return [mismatch.to_edit() for mismatch in make_diff(original, canonical)]


def _offset(lines: Sequence[str], position: Position) -> int:
    if position.line >= len(lines):
        return sum(len(line) for line in lines)
    base = sum(len(line) for line in lines[: position.line])
    return base + min(position.character, len(lines[position.line]))


def apply_edits(text: str, edits: Sequence[TextEdit]) -> str:
    """Apply non-overlapping edits the way an editor would."""
    lines = split_lines(text)
    spans = sorted(
        (
            (_offset(lines, edit.range.start), _offset(lines, edit.range.end), edit.new_text)
            for edit in edits
        ),
        key=lambda span: span[0],
        reverse=True,
    )
    for start, end, new_text in spans:
        text = text[:start] + new_text + text[end:]
    return text
