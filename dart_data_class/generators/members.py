"""Canonical member text for data classes.

Every ``*_text`` function is a pure function of a :class:`ClassModel`; the
output is the exact text written into the class, so regenerating against
already generated code compares equal and produces no edits.
:func:`generate_members` compares that text with what the class already
contains and fills the class's pending inserts and replacements.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..config import GeneratorConfig
from ..models import ClassModel, PropertyModel, ReplacementUnit
from ..parsers.imports import ImportBlock

INDENT = '  '

FLUTTER_FOUNDATION = 'package:flutter/foundation.dart'
FLUTTER_FOUNDATION_OVERRIDES = (
    'package:flutter/material.dart',
    'package:flutter/cupertino.dart',
    'package:flutter/widgets.dart',
)
COLLECTION_PACKAGE = 'package:collection/collection.dart'
EQUATABLE_PACKAGE = 'package:equatable/equatable.dart'
DART_CONVERT = 'dart:convert'


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

def _generic_names(cls: ClassModel) -> set:
    return {n for n, _ in cls.generic_parameters}


def _passes_through(prop: PropertyModel, cls: ClassModel) -> bool:
    """Value is stored as-is in a map (primitives, maps, type parameters)."""
    return prop.is_primitive or prop.type in _generic_names(cls)


def _nullable(type_text: str) -> str:
    if type_text == 'dynamic' or type_text.endswith('?'):
        return type_text
    return type_text + '?'


def _uses_named_constructor(cls: ClassModel) -> bool:
    return cls.is_widget or (cls.has_constructor and cls.has_named_constructor)


def _constructor_is_const(cls: ClassModel) -> bool:
    return cls.is_widget or cls.is_const_constructor


def is_simple_constructor(cls: ClassModel) -> bool:
    """Unnamed constructor without initializer list or body."""
    if cls.constructor_text is None:
        return False
    text = ' '.join(cls.constructor_text.split())
    if text.startswith('const '):
        text = text[len('const '):]
    if not re.match(re.escape(cls.name) + r'\s*\(', text):
        return False
    return text.endswith(');') and re.search(r'\)\s*:', text) is None


def _arguments(cls: ClassModel, values: List[Tuple[PropertyModel, str]]) -> List[str]:
    if _uses_named_constructor(cls):
        return [f'{p.json_name}: {v},' for p, v in values]
    return [f'{v},' for _, v in values]


# ---------------------------------------------------------------------------
# member text
# ---------------------------------------------------------------------------

def constructor_text(cls: ClassModel) -> str:
    prefix = INDENT + ('const ' if _constructor_is_const(cls) else '')
    if not _uses_named_constructor(cls):
        params = ', '.join(f'this.{p.json_name}' for p in cls.fields)
        return f'{prefix}{cls.name}({params});'

    lines = [f'{prefix}{cls.name}({{']
    if cls.is_widget:
        lines.append(f'{INDENT * 2}super.key,')
    for p in cls.fields:
        required = '' if p.is_nullable else 'required '
        lines.append(f'{INDENT * 2}{required}this.{p.json_name},')
    lines.append(f'{INDENT}}});')
    return '\n'.join(lines)


def copy_with_text(cls: ClassModel) -> str:
    lines = [f'{INDENT}{cls.type} copyWith({{']
    for p in cls.fields:
        lines.append(f'{INDENT * 2}{_nullable(p.type)} {p.name},')
    lines.append(f'{INDENT}}}) {{')
    lines.append(f'{INDENT * 2}return {cls.type}(')
    values = [(p, f'{p.name} ?? this.{p.json_name}') for p in cls.fields]
    lines.extend(INDENT * 3 + a for a in _arguments(cls, values))
    lines.append(f'{INDENT * 2});')
    lines.append(f'{INDENT}}}')
    return '\n'.join(lines)


def _to_map_value(prop: PropertyModel, cls: ClassModel) -> str:
    name = prop.json_name
    q = '?' if prop.is_nullable else ''
    if prop.is_list or prop.is_set:
        element = prop.list_type
        if _passes_through(element, cls):
            return f'{name}{q}.toList()' if prop.is_set else name
        if element.type == 'DateTime':
            return f'{name}{q}.map((x) => x.millisecondsSinceEpoch).toList()'
        return f'{name}{q}.map((x) => x.toMap()).toList()'
    if _passes_through(prop, cls):
        return name
    if prop.type == 'DateTime':
        return f'{name}{q}.millisecondsSinceEpoch'
    return f'{name}{q}.toMap()'


def to_map_text(cls: ClassModel) -> str:
    lines = [
        f'{INDENT}Map<String, dynamic> toMap() {{',
        f'{INDENT * 2}return <String, dynamic>{{',
    ]
    for p in cls.fields:
        lines.append(f"{INDENT * 3}'{p.json_name}': {_to_map_value(p, cls)},")
    lines.append(f'{INDENT * 2}}};')
    lines.append(f'{INDENT}}}')
    return '\n'.join(lines)


def _from_map_value(prop: PropertyModel, cls: ClassModel) -> str:
    key = f"map['{prop.json_name}']"

    if prop.is_list or prop.is_set:
        collection = 'Set' if prop.is_set else 'List'
        element = prop.list_type
        arg = element.declared_type
        raw = f'{key} as List<dynamic>'
        if _passes_through(element, cls):
            value = f'{collection}<{arg}>.from({raw})'
        elif element.type == 'DateTime':
            value = (f'{collection}<{arg}>.from(({raw}).map<{arg}>('
                     f'(x) => DateTime.fromMillisecondsSinceEpoch(x as int)))')
        else:
            value = (f'{collection}<{arg}>.from(({raw}).map<{arg}>('
                     f'(x) => {element.type}.fromMap(x as Map<String, dynamic>)))')
    elif prop.is_map:
        value = f'{prop.type}.from({key} as Map)'
    elif prop.type == 'dynamic':
        return key
    elif prop.is_int or prop.is_double:
        conversion = 'toInt' if prop.is_int else 'toDouble'
        if prop.is_nullable:
            return f'({key} as num?)?.{conversion}()'
        return f'({key} as num).{conversion}()'
    elif _passes_through(prop, cls):
        return f'{key} as {prop.declared_type}'
    elif prop.type == 'DateTime':
        value = f'DateTime.fromMillisecondsSinceEpoch({key} as int)'
    else:
        value = f'{prop.type}.fromMap({key} as Map<String, dynamic>)'

    if prop.is_nullable:
        return f'{key} != null ? {value} : null'
    return value


def from_map_text(cls: ClassModel) -> str:
    lines = [
        f'{INDENT}factory {cls.name}.fromMap(Map<String, dynamic> map) {{',
        f'{INDENT * 2}return {cls.type}(',
    ]
    values = [(p, _from_map_value(p, cls)) for p in cls.fields]
    lines.extend(INDENT * 3 + a for a in _arguments(cls, values))
    lines.append(f'{INDENT * 2});')
    lines.append(f'{INDENT}}}')
    return '\n'.join(lines)


def to_json_text(cls: ClassModel) -> str:
    return f'{INDENT}String toJson() => json.encode(toMap());'


def from_json_text(cls: ClassModel) -> str:
    return (f'{INDENT}factory {cls.name}.fromJson(String source) =>\n'
            f'{INDENT * 3}{cls.name}.fromMap(json.decode(source) as Map<String, dynamic>);')


def to_string_text(cls: ClassModel) -> str:
    values = ', '.join(f'{p.name}: ${p.json_name}' for p in cls.fields)
    return (f'{INDENT}@override\n'
            f"{INDENT}String toString() => '{cls.name}({values})';")


def _equality_check(prop: PropertyModel, flutter: bool) -> str:
    name = prop.json_name
    if not prop.is_collection:
        return f'other.{name} == {name}'
    if flutter:
        helper = {'list': 'listEquals', 'set': 'setEquals', 'map': 'mapEquals'}[prop.collection_kind]
        return f'{helper}(other.{name}, {name})'
    return f'const DeepCollectionEquality().equals(other.{name}, {name})'


def equality_text(cls: ClassModel, flutter: bool = False) -> str:
    checks = [_equality_check(p, flutter) for p in cls.fields]
    body = f' &&\n{INDENT * 4}'.join(checks)
    return '\n'.join([
        f'{INDENT}@override',
        f'{INDENT}bool operator ==(covariant {cls.type} other) {{',
        f'{INDENT * 2}if (identical(this, other)) return true;',
        '',
        f'{INDENT * 2}return {body};',
        f'{INDENT}}}',
    ])


def hash_code_text(cls: ClassModel) -> str:
    hashes = [f'{p.json_name}.hashCode' for p in cls.fields]
    if len(hashes) == 1:
        return f'{INDENT}@override\n{INDENT}int get hashCode => {hashes[0]};'
    body = f' ^\n{INDENT * 3}'.join(hashes)
    return (f'{INDENT}@override\n'
            f'{INDENT}int get hashCode =>\n'
            f'{INDENT * 3}{body};')


def props_text(cls: ClassModel) -> str:
    names = ', '.join(p.json_name for p in cls.fields)
    return f'{INDENT}@override\n{INDENT}List<Object?> get props => [{names}];'


# ---------------------------------------------------------------------------
# planning
# ---------------------------------------------------------------------------

def _planned_members(cls: ClassModel, config: GeneratorConfig,
                     flutter: bool) -> List[Tuple[str, str, str]]:
    """(key, existing member name, canonical text) in insertion order."""
    members = config.members
    if cls.is_widget:
        return []

    planned: List[Tuple[str, str, str]] = []
    concrete = not cls.is_abstract
    if members.copy_with and concrete:
        planned.append(('copyWith', 'copyWith', copy_with_text(cls)))
    if members.to_map:
        planned.append(('toMap', 'toMap', to_map_text(cls)))
    if members.from_map and concrete:
        planned.append(('fromMap', f'{cls.name}.fromMap', from_map_text(cls)))
    if members.to_json:
        planned.append(('toJson', 'toJson', to_json_text(cls)))
    if members.from_json and concrete:
        planned.append(('fromJson', f'{cls.name}.fromJson', from_json_text(cls)))
    if members.to_string:
        planned.append(('toString', 'toString', to_string_text(cls)))
    if cls.uses_equatable:
        if members.props:
            planned.append(('props', 'props', props_text(cls)))
    else:
        if members.equality:
            planned.append(('equality', 'operator ==', equality_text(cls, flutter)))
        if members.hash_code:
            planned.append(('hashCode', 'hashCode', hash_code_text(cls)))
    return planned


def _require_imports(cls: ClassModel, imports: ImportBlock, keys: List[str],
                     flutter: bool) -> None:
    if 'toJson' in keys or 'fromJson' in keys:
        imports.requires_import(DART_CONVERT)
    if cls.uses_equatable:
        imports.requires_import(EQUATABLE_PACKAGE)
    elif 'equality' in keys and any(p.is_collection for p in cls.fields):
        if flutter:
            imports.requires_import(FLUTTER_FOUNDATION, FLUTTER_FOUNDATION_OVERRIDES)
        else:
            imports.requires_import(COLLECTION_PACKAGE)


def _apply_equatable(cls: ClassModel) -> None:
    if cls.uses_equatable or cls.is_widget:
        return
    if cls.superclass is None:
        cls.superclass = 'Equatable'
    else:
        cls.mixins.append('EquatableMixin')


def _plan_constructor(cls: ClassModel) -> Optional[ReplacementUnit]:
    text = constructor_text(cls)
    if not cls.has_constructor:
        cls.synthesized_constructor = text
        return None
    if not is_simple_constructor(cls) or cls.constructor_text == text:
        return None
    start, end = cls.constructor_span
    return ReplacementUnit('constructor', start, end, cls.constructor_text, text)


def generate_members(cls: ClassModel, imports: ImportBlock,
                     config: Optional[GeneratorConfig] = None,
                     flutter: bool = False) -> ClassModel:
    """Fill ``pending_inserts`` / ``pending_replacements`` of *cls*."""
    config = config or GeneratorConfig()
    if config.equatable.use_equatable:
        _apply_equatable(cls)

    replacements: List[ReplacementUnit] = []
    if config.members.constructor:
        unit = _plan_constructor(cls)
        if unit is not None:
            replacements.append(unit)

    inserts: List[str] = []
    planned = _planned_members(cls, config, flutter)
    for key, existing_name, text in planned:
        existing = cls.member(existing_name)
        if existing is None:
            inserts.append(text)
        elif existing.text != text:
            replacements.append(ReplacementUnit(
                key, existing.start_line, existing.end_line, existing.text, text))

    _require_imports(cls, imports, [k for k, _, _ in planned], flutter)

    cls.pending_inserts = '\n'.join(part for text in inserts for part in ('', text))
    cls.pending_replacements = sorted(replacements, key=lambda u: u.start_line)
    return cls
