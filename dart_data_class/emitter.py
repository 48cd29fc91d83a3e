"""Turn planned class and import text into minimal line-range edits."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .models import ClassModel, Edit
from .parsers.imports import ImportBlock
from .planner import plan_class


def minimal_edit(old: Sequence[str], new: Sequence[str], first_line: int) -> Optional[Edit]:
    """Smallest edit turning *old* (starting at *first_line*) into *new*.

    Common leading and trailing lines are trimmed.  Both sides always keep
    at least one line, so insertions and deletions still name a real range.
    """
    old = list(old)
    new = list(new)
    if old == new:
        return None

    prefix = 0
    while prefix < len(old) and prefix < len(new) and old[prefix] == new[prefix]:
        prefix += 1
    suffix = 0
    while (suffix < len(old) - prefix and suffix < len(new) - prefix
           and old[-1 - suffix] == new[-1 - suffix]):
        suffix += 1

    if prefix + suffix in (len(old), len(new)):
        if suffix > 0:
            suffix -= 1
        else:
            prefix -= 1

    return Edit(
        start_line=first_line + prefix,
        end_line=first_line + len(old) - suffix - 1,
        text='\n'.join(new[prefix:len(new) - suffix]),
    )


def class_edit(cls: ClassModel, lines: Optional[Sequence[str]] = None) -> Optional[Edit]:
    replacement = plan_class(cls, lines)
    return minimal_edit(cls.content.split('\n'), replacement.split('\n'), cls.start_line)


def _first_code_line(lines: Sequence[str]) -> int:
    for idx, raw in enumerate(lines):
        line = raw.strip()
        if not line or line.startswith(('//', '/*', '*', 'library')):
            continue
        return idx + 1
    return len(lines)


def import_edit(lines: Sequence[str], imports: ImportBlock,
                workspace_name: Optional[str] = None) -> Optional[Edit]:
    if not imports.has_imports:
        return None
    formatted = imports.format(workspace_name)
    if imports.has_previous_imports:
        old = lines[imports.start_line - 1:imports.end_line]
        return minimal_edit(old, formatted.split('\n'), imports.start_line)

    anchor = _first_code_line(lines)
    return Edit(anchor, anchor, f'{formatted}\n\n{lines[anchor - 1]}')


def emit_edits(lines: Sequence[str], classes: List[ClassModel], imports: ImportBlock,
               workspace_name: Optional[str] = None) -> List[Edit]:
    """Edits for every planned class plus the import block, sorted by line."""
    edits: List[Edit] = []
    for cls in classes:
        edit = class_edit(cls, lines)
        if edit is not None:
            edits.append(edit)

    block = import_edit(lines, imports, workspace_name)
    if block is not None:
        merged = False
        if not imports.has_previous_imports:
            # the new block is prepended to a line a class edit may start at
            prefix = imports.format(workspace_name) + '\n\n'
            for idx, edit in enumerate(edits):
                if edit.start_line == block.start_line:
                    edits[idx] = Edit(edit.start_line, edit.end_line, prefix + edit.text)
                    merged = True
                    break
        if not merged:
            edits.append(block)

    return sorted(edits, key=lambda e: e.start_line)
