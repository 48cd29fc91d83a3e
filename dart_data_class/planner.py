"""Reconstruct the text of a class from its model and pending changes."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from .models import ClassModel, PropertyModel
from .parsers.tokenizer import code_view


def _field_declaration(prop: PropertyModel) -> str:
    modifier = 'final ' if prop.is_final else 'const ' if prop.is_const else ''
    if prop.is_late:
        modifier = 'late ' + modifier
    return f'  {modifier}{prop.declared_type} {prop.json_name};'


def _expand_single_line(cls: ClassModel) -> str:
    chunks = [cls.header]
    chunks.extend(_field_declaration(p) for p in cls.fields)
    if cls.synthesized_constructor:
        chunks.append('\n' + cls.synthesized_constructor)
    if cls.pending_inserts:
        chunks.append(cls.pending_inserts)
    chunks.append('}')
    return '\n'.join(chunks)


def generate_class_replacement(cls: ClassModel) -> str:
    """Full replacement text for lines ``start_line..end_line`` of *cls*.

    The header is always synthesized; code after its opening brace moves to
    a line of its own.  Lines covered by a pending replacement are swapped
    for its text (once per unit), the synthesized constructor follows the
    last field, new members go in front of the closing brace, and every
    other line is copied verbatim.
    """
    if cls.single_line:
        return _expand_single_line(cls)

    last = cls.end_line if cls.end_line is not None else cls.start_line + cls.content.count('\n')
    lines = cls.content.split('\n')
    chunks: List[str] = []
    emitted = set()

    for line in range(cls.start_line, last + 1):
        if line <= cls.header_end_line:
            if line == cls.start_line:
                chunks.append(cls.header)
            if line == cls.header_end_line and cls.header_remainder:
                unit = cls.replacement_at_line(line)
                if unit is not None:
                    emitted.add((unit.start_line, unit.end_line))
                    chunks.append(unit.replacement)
                elif code_view(cls.header_remainder).strip():
                    chunks.append('  ' + cls.header_remainder)
                else:
                    # a trailing comment stays on the header line
                    chunks[0] += ' ' + cls.header_remainder
        elif line == cls.end_line and cls.is_valid:
            if cls.pending_inserts:
                chunks.append(cls.pending_inserts)
            chunks.append(lines[line - cls.start_line])
        else:
            unit = cls.replacement_at_line(line)
            if unit is None:
                chunks.append(lines[line - cls.start_line])
            elif (unit.start_line, unit.end_line) not in emitted:
                emitted.add((unit.start_line, unit.end_line))
                chunks.append(unit.replacement)

        if (line == cls.props_end_line and cls.synthesized_constructor
                and not cls.has_constructor):
            chunks.append('\n' + cls.synthesized_constructor)

    text = '\n'.join(chunks)
    return text[:-1] if text.endswith('\n') else text


def plan_class(cls: ClassModel, lines: Optional[Sequence[str]] = None) -> str:
    """Replacement text for *cls*, re-reading its lines from *lines* when given."""
    if lines is not None and cls.start_line is not None and cls.end_line is not None:
        cls = replace(cls, content='\n'.join(lines[cls.start_line - 1:cls.end_line]))
    return generate_class_replacement(cls)
