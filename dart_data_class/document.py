"""Host-side documents: read the current text, apply an edit batch."""

from __future__ import annotations

from typing import List, Protocol, Sequence

from .models import Edit


class Document(Protocol):
    def get_text(self) -> str: ...

    def apply_edits(self, edits: Sequence[Edit]) -> None: ...


def _validate(edits: List[Edit], line_count: int) -> None:
    previous_end = 0
    for edit in edits:
        if edit.start_line < 1 or edit.end_line > line_count or edit.end_line < edit.start_line:
            raise ValueError(
                f"edit range {edit.start_line}-{edit.end_line} outside document of {line_count} lines")
        if edit.start_line <= previous_end:
            raise ValueError(f"edit at line {edit.start_line} overlaps the previous edit")
        previous_end = edit.end_line


def apply_edits_to_text(text: str, edits: Sequence[Edit]) -> str:
    """Apply *edits* to *text* as one batch; nothing is applied if any is invalid."""
    newline = '\r\n' if '\r\n' in text else '\n'
    lines = text.replace('\r\n', '\n').split('\n')
    ordered = sorted(edits, key=lambda e: e.start_line)
    _validate(ordered, len(lines))
    for edit in reversed(ordered):
        lines[edit.start_line - 1:edit.end_line] = edit.text.split('\n')
    return newline.join(lines)


class TextDocument:
    """In-memory document."""

    def __init__(self, text: str):
        self.text = text

    def get_text(self) -> str:
        return self.text

    def apply_edits(self, edits: Sequence[Edit]) -> None:
        self.text = apply_edits_to_text(self.text, edits)


class FileDocument:
    """UTF-8 file on disk; line endings are preserved."""

    def __init__(self, path: str):
        self.path = path

    def get_text(self) -> str:
        with open(self.path, 'r', encoding='utf-8', newline='') as fh:
            return fh.read()

    def apply_edits(self, edits: Sequence[Edit]) -> None:
        if not edits:
            return
        text = apply_edits_to_text(self.get_text(), edits)
        with open(self.path, 'w', encoding='utf-8', newline='') as fh:
            fh.write(text)
