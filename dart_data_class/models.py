"""Data models for the Dart class model and the diff/patch engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, asdict
from enum import Enum, auto
from typing import List, Optional, Tuple


def to_var_name(source: str) -> str:
    """Camel-case a source or JSON key (``user_id`` -> ``userId``, ``_id`` -> ``id``)."""
    parts = [p for p in re.split(r'[-_\s]+', source) if p]
    if not parts:
        return source
    words = [p.lower() if p.isupper() else p for p in parts]
    first = words[0]
    rest = ''.join(w[0].upper() + w[1:] for w in words[1:])
    return first[0].lower() + first[1:] + rest


# ---------------------------------------------------------------------------
# Property model
# ---------------------------------------------------------------------------

_PRIMITIVES = frozenset({'String', 'num', 'dynamic', 'bool', 'int', 'double'})

_DEFAULTS = {
    'String': "''",
    'num': '0',
    'int': '0',
    'double': '0.0',
    'bool': 'false',
    'dynamic': 'null',
}


@dataclass(frozen=True)
class PropertyModel:
    """One field of a class, classified from its declared type."""
    declared_type: str
    json_name: str
    line: int = 1
    is_final: bool = True
    is_const: bool = False
    is_late: bool = False

    @property
    def name(self) -> str:
        return to_var_name(self.json_name)

    @property
    def is_nullable(self) -> bool:
        return self.declared_type.endswith('?')

    @property
    def type(self) -> str:
        return self.declared_type[:-1] if self.is_nullable else self.declared_type

    def _is_collection_type(self, collection: str) -> bool:
        return self.type == collection or self.type.startswith(collection + '<')

    @property
    def is_list(self) -> bool:
        return self._is_collection_type('List')

    @property
    def is_set(self) -> bool:
        return self._is_collection_type('Set')

    @property
    def is_map(self) -> bool:
        return self._is_collection_type('Map')

    @property
    def is_collection(self) -> bool:
        return self.is_list or self.is_set or self.is_map

    @property
    def collection_kind(self) -> str:
        if self.is_list:
            return 'list'
        if self.is_set:
            return 'set'
        if self.is_map:
            return 'map'
        return 'none'

    @property
    def type_arguments(self) -> str:
        """Text between the outer angle brackets of the type, or ``''``."""
        t = self.type
        start = t.find('<')
        end = t.rfind('>')
        if start < 0 or end < start:
            return ''
        return t[start + 1:end].strip()

    @property
    def list_type(self) -> PropertyModel:
        """Element property for List/Set, the property itself otherwise."""
        if self.is_list or self.is_set:
            element = self.type_arguments or 'dynamic'
            return PropertyModel(element, self.json_name, self.line, self.is_final)
        return self

    @property
    def is_int(self) -> bool:
        return self.list_type.type == 'int'

    @property
    def is_double(self) -> bool:
        return self.list_type.type == 'double'

    @property
    def is_primitive(self) -> bool:
        t = self.list_type.type
        return t in _PRIMITIVES or self.is_map

    @property
    def def_value(self) -> str:
        if self.is_list:
            return 'const []'
        if self.is_map or self.is_set:
            return 'const {}'
        return _DEFAULTS.get(self.type, f'{self.type}()')


# ---------------------------------------------------------------------------
# Spans and replacements
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemberSpan:
    """An existing declaration inside a class body (method, getter, factory)."""
    name: str
    start_line: int
    end_line: int
    text: str


@dataclass(frozen=True)
class ReplacementUnit:
    """Canonical text for a line range of the original class."""
    name: str
    start_line: int
    end_line: int
    current: str
    replacement: str

    def covers(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


@dataclass(frozen=True)
class Edit:
    """Replace lines ``start_line..end_line`` (1-based, inclusive) with *text*."""
    start_line: int
    end_line: int
    text: str

    def to_dict(self) -> dict:
        return asdict(self)


class IssueKind(Enum):
    NO_FIELDS = auto()
    NO_ENDING = auto()
    DUPLICATE_NAMES = auto()
    UNSUPPORTED = auto()
    NOT_CONVERTIBLE = auto()


@dataclass(frozen=True)
class ClassIssue:
    class_name: str
    kind: IssueKind
    message: str


# ---------------------------------------------------------------------------
# Class model
# ---------------------------------------------------------------------------

WIDGET_BASES = ('StatelessWidget', 'StatefulWidget')
EQUATABLE_MIXIN = 'EquatableMixin'


@dataclass
class ClassModel:
    """A class detected in a Dart document.

    Line numbers are 1-based and refer to the scanned document.  ``content``
    holds the original text of lines ``start_line..end_line``.
    """
    name: str
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    header_end_line: Optional[int] = None
    generic_parameters: list = field(default_factory=list)  # (name, bound|None)
    superclass: Optional[str] = None
    mixins: list = field(default_factory=list)
    interfaces: list = field(default_factory=list)
    fields: list = field(default_factory=list)  # list of PropertyModel
    constructor_span: Optional[Tuple[int, int]] = None
    constructor_text: Optional[str] = None
    members: list = field(default_factory=list)  # list of MemberSpan
    is_abstract: bool = False
    single_line: bool = False
    # raw text after the opening brace on the last header line
    header_remainder: str = ''
    # final fields the field grammar does not cover, e.g. `final int a, b;`
    unsupported_lines: list = field(default_factory=list)
    content: str = ''
    # written by the member generators
    pending_inserts: str = ''
    pending_replacements: list = field(default_factory=list)  # ReplacementUnit
    synthesized_constructor: Optional[str] = None

    # --- type text ---

    @property
    def full_generic_type(self) -> str:
        if not self.generic_parameters:
            return ''
        params = [n if b is None else f'{n} extends {b}' for n, b in self.generic_parameters]
        return '<' + ', '.join(params) + '>'

    @property
    def generic_type(self) -> str:
        if not self.generic_parameters:
            return ''
        return '<' + ', '.join(n for n, _ in self.generic_parameters) + '>'

    @property
    def type(self) -> str:
        return self.name + self.generic_type

    @property
    def header(self) -> str:
        keyword = 'abstract class' if self.is_abstract else 'class'
        decl = f'{keyword} {self.name}{self.full_generic_type}'
        if self.superclass is not None:
            decl += f' extends {self.superclass}'
        if self.mixins:
            decl += ' with ' + ', '.join(self.mixins)
        if self.interfaces:
            decl += ' implements ' + ', '.join(self.interfaces)
        return decl + ' {'

    # --- structure ---

    @property
    def props_end_line(self) -> int:
        return self.fields[-1].line if self.fields else -1

    @property
    def class_detected(self) -> bool:
        return self.start_line is not None

    @property
    def has_ending(self) -> bool:
        return self.end_line is not None

    @property
    def has_fields(self) -> bool:
        return len(self.fields) > 0

    @property
    def has_constructor(self) -> bool:
        return self.constructor_span is not None and self.constructor_text is not None

    @property
    def has_named_constructor(self) -> bool:
        if self.constructor_text is None:
            return True
        text = re.sub(r'^const\s+', '', self.constructor_text.strip())
        return text.startswith(self.name + '({')

    @property
    def is_const_constructor(self) -> bool:
        return self.constructor_text is not None and self.constructor_text.lstrip().startswith('const ')

    @property
    def unique_field_names(self) -> bool:
        names = [p.name for p in self.fields]
        return len(names) == len(set(names))

    @property
    def is_valid(self) -> bool:
        return (self.class_detected and self.has_ending and self.has_fields
                and self.unique_field_names and not self.unsupported_lines)

    # --- framework markers ---

    @property
    def is_widget(self) -> bool:
        return self.superclass in WIDGET_BASES

    @property
    def is_stateless_widget(self) -> bool:
        return self.superclass == 'StatelessWidget'

    @property
    def is_state(self) -> bool:
        return not self.is_widget and self.superclass is not None and self.superclass.startswith('State<')

    @property
    def uses_equatable(self) -> bool:
        return self.superclass == 'Equatable' or EQUATABLE_MIXIN in self.mixins

    # --- diagnostics ---

    @property
    def issue_kind(self) -> Optional[IssueKind]:
        if self.is_valid:
            return None
        if not self.has_fields:
            return IssueKind.NO_FIELDS
        if not self.has_ending:
            return IssueKind.NO_ENDING
        if not self.unique_field_names:
            return IssueKind.DUPLICATE_NAMES
        return IssueKind.UNSUPPORTED

    @property
    def issue(self) -> str:
        prefix = f"{self.name} couldn't be converted to a data class"
        kind = self.issue_kind
        if kind is IssueKind.NO_FIELDS:
            return prefix + ': Class must have at least one property!'
        if kind is IssueKind.NO_ENDING:
            return prefix + ': Class has no ending!'
        if kind is IssueKind.DUPLICATE_NAMES:
            return prefix + ": Class doesn't have unique property names!"
        if kind is IssueKind.UNSUPPORTED and self.unsupported_lines:
            return prefix + f": Unsupported field declaration on line {self.unsupported_lines[0]}!"
        return prefix + '.'

    def member(self, name: str) -> Optional[MemberSpan]:
        for span in self.members:
            if span.name == name:
                return span
        return None

    def replacement_at_line(self, line: int) -> Optional[ReplacementUnit]:
        for unit in self.pending_replacements:
            if unit.covers(line):
                return unit
        return None

    def line_text(self, line: int) -> str:
        """Original text of document line *line* (must lie inside the class)."""
        return self.content.split('\n')[line - self.start_line]

    def text_between(self, start: int, end: int) -> str:
        lines = self.content.split('\n')
        return '\n'.join(lines[start - self.start_line:end - self.start_line + 1])
