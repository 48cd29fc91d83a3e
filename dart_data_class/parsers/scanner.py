"""Line-based scanner that turns Dart source into class models.

The document is folded line by line through an immutable :class:`ScanState`.
Only class-level structure is recognised: the class header, typed fields,
the constructor and the spans of other members.  Member bodies are opaque.
Scanning never fails; constructs it does not understand simply end up as
verbatim text, and broken classes come out invalid.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from ..models import ClassModel, MemberSpan, PropertyModel
from .imports import ImportBlock
from .tokenizer import code_lines, code_view, count_delimiters, split_top_level

_RE_CLASS_START = re.compile(r'^\s*(abstract\s+)?class\s+(\w+)')

_RE_CLAUSE = re.compile(r'\b(extends|with|implements)\b')

_RE_ANNOTATION = re.compile(r'^@[\w.]+(?:\s*\(.*\))?$')

_RE_FIELD = re.compile(
    r'^(?P<late>late\s+)?(?:(?P<modifier>final|const)\s+)?(?P<late_after>late\s+)?'
    r'(?P<type>.+?)\s+'
    r'(?P<name>[A-Za-z_$][\w$]*)\s*;$'
)

_RE_SIMPLE_TYPE = re.compile(r'[\w$.]+\??')
_RE_FUNCTION_TYPE = re.compile(r'(?:[\w$.]+\??\s+)*Function\??')
_RE_FINAL_DECL = re.compile(r'^(?:late\s+)?final\s')

_NOT_A_TYPE = frozenset({
    'static', 'var', 'return', 'external', 'abstract', 'covariant',
    'factory', 'typedef', 'late', 'final', 'const', 'operator', 'get', 'set',
})


# =====================================================================
# SCAN STATE
# =====================================================================

@dataclass(frozen=True)
class _OpenSpan:
    kind: str  # 'constructor' | 'member'
    name: str
    start_line: int
    parens: int
    braces: int
    code: str


@dataclass(frozen=True)
class _ClassDraft:
    name: str
    start_line: int
    header_code: str
    header_end_line: Optional[int] = None
    is_abstract: bool = False
    generic_parameters: Tuple = ()
    superclass: Optional[str] = None
    mixins: Tuple = ()
    interfaces: Tuple = ()
    fields: Tuple = ()
    constructor: Optional[Tuple[int, int]] = None
    members: Tuple = ()  # (name, start, end)
    unsupported: Tuple = ()  # start lines
    header_remainder: str = ''


@dataclass(frozen=True)
class ScanState:
    depth: int = 0
    draft: Optional[_ClassDraft] = None
    span: Optional[_OpenSpan] = None
    annotation_line: Optional[int] = None
    classes: Tuple = ()


@dataclass
class ScanResult:
    classes: list
    imports: ImportBlock


# =====================================================================
# HEADER PARSING
# =====================================================================

def _normalize(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


def _matching_angle(text: str) -> int:
    """Index of the ``>`` closing the ``<`` at position 0, or -1."""
    depth = 0
    for i, c in enumerate(text):
        if c == '<':
            depth += 1
        elif c == '>':
            depth -= 1
            if depth == 0:
                return i
    return -1


def parse_generic_parameters(inner: str) -> List[Tuple[str, Optional[str]]]:
    params: List[Tuple[str, Optional[str]]] = []
    for part in split_top_level(inner):
        pieces = re.split(r'\s+extends\s+', part, maxsplit=1)
        name = pieces[0].strip()
        bound = _normalize(pieces[1]) if len(pieces) > 1 else None
        params.append((name, bound))
    return params


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def parse_class_header(header: str) -> Optional[dict]:
    """Parse ``[abstract ]class Name<G> extends S with M implements I``.

    *header* is the code text before the opening brace.
    """
    m = _RE_CLASS_START.match(header)
    if not m:
        return None

    rest = header[m.end():].strip()
    generics: List[Tuple[str, Optional[str]]] = []
    if rest.startswith('<'):
        close = _matching_angle(rest)
        if close < 0:
            return None
        generics = parse_generic_parameters(rest[1:close])
        rest = rest[close + 1:]

    # keyword positions outside of type arguments
    marks = []
    for km in _RE_CLAUSE.finditer(rest):
        before = rest[:km.start()]
        if before.count('<') == before.count('>'):
            marks.append((km.group(1), km.start(), km.end()))

    superclass = None
    mixins: List[str] = []
    interfaces: List[str] = []
    for idx, (keyword, _, end) in enumerate(marks):
        stop = marks[idx + 1][1] if idx + 1 < len(marks) else len(rest)
        segment = rest[end:stop]
        if keyword == 'extends':
            superclass = _normalize(segment) or None
        elif keyword == 'with':
            mixins.extend(_normalize(t) for t in split_top_level(segment))
        else:
            interfaces.extend(_normalize(t) for t in split_top_level(segment))

    return {
        'name': m.group(2),
        'is_abstract': m.group(1) is not None,
        'generic_parameters': tuple(generics),
        'superclass': superclass,
        'mixins': _unique(mixins),
        'interfaces': _unique(interfaces),
    }


# =====================================================================
# FIELDS / MEMBERS
# =====================================================================

def _outer_type(type_text: str) -> Optional[str]:
    """Type text with type arguments and parameter lists removed, or None if unbalanced."""
    angles = 0
    parens = 0
    out: list[str] = []
    for c in type_text:
        if c == '<':
            angles += 1
        elif c == '>':
            angles -= 1
        elif c == '(':
            parens += 1
        elif c == ')':
            parens -= 1
        elif angles == 0 and parens == 0:
            out.append(c)
        if angles < 0 or parens < 0:
            return None
    return ''.join(out) if angles == 0 and parens == 0 else None


def _is_type(type_text: str) -> bool:
    """Plain, generic, function (``R Function(...)``) or record type."""
    outer = _outer_type(type_text)
    if outer is None:
        return False
    outer = outer.strip()
    if type_text.startswith('('):
        return outer in ('', '?') or _RE_FUNCTION_TYPE.fullmatch(outer) is not None
    if any(word in _NOT_A_TYPE for word in outer.replace('?', ' ').split()):
        return False
    return (_RE_SIMPLE_TYPE.fullmatch(outer) is not None
            or _RE_FUNCTION_TYPE.fullmatch(outer) is not None)


def parse_field(code: str, line: int) -> Optional[PropertyModel]:
    """Parse a typed field declaration without initializer."""
    m = _RE_FIELD.match(code)
    if not m:
        return None
    type_text = m.group('type').strip()
    if not _is_type(type_text):
        return None
    modifier = m.group('modifier')
    return PropertyModel(
        declared_type=re.sub(r'\s+', ' ', type_text),
        json_name=m.group('name'),
        line=line,
        is_final=modifier == 'final',
        is_const=modifier == 'const',
        is_late=bool(m.group('late') or m.group('late_after')),
    )


def _strip_annotations(code: str) -> str:
    while code.startswith('@'):
        m = re.match(r'@[\w.]+(?:\s*\([^)]*\))?\s*', code)
        if not m or m.end() == 0:
            break
        code = code[m.end():]
    return code


def member_name(code: str) -> str:
    """Name used to match an existing member against generated ones."""
    text = _strip_annotations(code)
    signature = text.split('(')[0]
    m = re.search(r'\boperator\s*([^\s(]+)', text)
    if m:
        return f'operator {m.group(1)}'
    m = re.search(r'\bget\s+(\w+)', signature)
    if m:
        return m.group(1)
    m = re.match(r'(?:const\s+)?factory\s+([\w.]+)', text)
    if m:
        return m.group(1)
    m = re.search(r'([\w$.]+)\s*(?:<[^(]*>)?\s*\(', text)
    if m:
        return m.group(1)
    m = re.search(r'([\w$]+)\s*[;=]', text)
    if m:
        return m.group(1)
    return ''


def _constructor_pattern(class_name: str):
    return re.compile(r'^(?:const\s+)?' + re.escape(class_name) + r'(?:\.\w+)?\s*\(')


def _open_span(kind: str, name: str, start: int, code: str) -> _OpenSpan:
    return _OpenSpan(
        kind=kind,
        name=name,
        start_line=start,
        parens=count_delimiters(code, '(', ')'),
        braces=count_delimiters(code, '{', '}'),
        code=code,
    )


def _extend_span(span: _OpenSpan, code: str) -> _OpenSpan:
    if not code:
        return span
    return replace(
        span,
        parens=span.parens + count_delimiters(code, '(', ')'),
        braces=span.braces + count_delimiters(code, '{', '}'),
        code=f'{span.code} {code}',
    )


def _span_complete(span: _OpenSpan) -> bool:
    return span.parens <= 0 and span.braces <= 0 and span.code.rstrip().endswith((';', '}'))


def _record_span(draft: _ClassDraft, span: _OpenSpan, end_line: int) -> _ClassDraft:
    if span.kind == 'constructor' and draft.constructor is None:
        return replace(draft, constructor=(span.start_line, end_line))
    if span.kind == 'member' and _RE_FINAL_DECL.match(span.code) and '=' not in span.code:
        # a final field the single-line grammar missed, e.g. split over lines
        field = parse_field(span.code, end_line)
        if field is not None:
            return replace(draft, fields=draft.fields + (field,))
        return replace(draft, unsupported=draft.unsupported + (span.start_line,))
    return replace(draft, members=draft.members + ((span.name, span.start_line, end_line),))


def _single_line_fields(body: str, line: int) -> Tuple:
    segments = [s.strip() for s in split_top_level(body, ';')]
    fields = []
    for segment in segments:
        field = parse_field(segment + ';', line)
        if field is None:
            return ()
        fields.append(field)
    return tuple(fields)


# =====================================================================
# FOLD
# =====================================================================

def _finalize(draft: _ClassDraft, end_line: Optional[int], lines: List[str]) -> ClassModel:
    last = end_line if end_line is not None else len(lines)
    members = [
        MemberSpan(name, s, e, '\n'.join(lines[s - 1:e]))
        for name, s, e in draft.members
    ]
    constructor_text = None
    if draft.constructor is not None:
        s, e = draft.constructor
        constructor_text = '\n'.join(lines[s - 1:e])
    return ClassModel(
        name=draft.name,
        start_line=draft.start_line,
        end_line=end_line,
        header_end_line=draft.header_end_line or draft.start_line,
        generic_parameters=list(draft.generic_parameters),
        superclass=draft.superclass,
        mixins=list(draft.mixins),
        interfaces=list(draft.interfaces),
        fields=list(draft.fields),
        constructor_span=draft.constructor,
        constructor_text=constructor_text,
        members=members,
        is_abstract=draft.is_abstract,
        single_line=end_line is not None and end_line == draft.start_line,
        header_remainder=draft.header_remainder,
        unsupported_lines=list(draft.unsupported),
        content='\n'.join(lines[draft.start_line - 1:last]),
    )


def _raw_remainder(raw: str) -> str:
    """Text after the first code brace of a raw source line."""
    for i, c in enumerate(raw):
        if c == '{' and '{' in code_view(raw[:i + 1]):
            return raw[i + 1:].strip()
    return ''


def _header_line(state: ScanState, no: int, code: str, lines: List[str],
                 draft: _ClassDraft) -> ScanState:
    """Feed one line of a (possibly multi-line) class header."""
    if '{' not in code:
        text = f'{draft.header_code} {code}'.strip() if draft.header_code else code
        return replace(state, draft=replace(draft, header_code=text))

    brace = code.index('{')
    header_text = f'{draft.header_code} {code[:brace]}' if draft.header_code else code[:brace]
    parsed = parse_class_header(header_text.strip())
    if parsed is None:
        # not a class after all; resume plain depth tracking
        depth = max(state.depth + count_delimiters(code, '{', '}'), 0)
        return replace(state, draft=None, depth=depth)

    draft = replace(draft, header_code=header_text.strip(), header_end_line=no, **parsed)
    depth = count_delimiters(code, '{', '}')
    if depth > 0:
        draft = replace(draft, header_remainder=_raw_remainder(lines[no - 1]))
        state = replace(state, draft=draft, depth=1, span=None, annotation_line=None)
        remainder = code[brace + 1:]
        if remainder.strip():
            return _body_line(state, no, remainder, lines)
        return replace(state, depth=depth)

    # class body opened and closed on this line
    fields: Tuple = ()
    if no == draft.start_line:
        body = code[brace + 1:code.rindex('}')]
        fields = _single_line_fields(body, no)
    model = _finalize(replace(draft, fields=fields), no, lines)
    return ScanState(depth=0, classes=state.classes + (model,))


def _body_line(state: ScanState, no: int, code: str, lines: List[str]) -> ScanState:
    draft = state.draft
    span = state.span
    annotation = state.annotation_line
    stripped = code.strip()

    if span is not None:
        span = _extend_span(span, stripped)
    elif state.depth == 1 and stripped and not stripped.startswith('}'):
        if _RE_ANNOTATION.match(stripped):
            if annotation is None:
                annotation = no
        else:
            start = annotation if annotation is not None else no
            annotation = None
            field = parse_field(stripped, no)
            if draft.constructor is None and _constructor_pattern(draft.name).match(stripped):
                span = _open_span('constructor', draft.name, start, stripped)
            elif field is not None:
                draft = replace(draft, fields=draft.fields + (field,))
            else:
                span = _open_span('member', member_name(stripped), start, stripped)

    if span is not None and _span_complete(span):
        draft = _record_span(draft, span, no)
        span = None

    depth = state.depth + count_delimiters(code, '{', '}')
    if depth <= 0:
        model = _finalize(draft, no, lines)
        return ScanState(depth=0, classes=state.classes + (model,))
    return replace(state, draft=draft, span=span, annotation_line=annotation, depth=depth)


def _step(state: ScanState, no: int, code: str, lines: List[str]) -> ScanState:
    if state.draft is None:
        if state.depth == 0:
            m = _RE_CLASS_START.match(code)
            if m:
                draft = _ClassDraft(name=m.group(2), start_line=no, header_code='')
                return _header_line(state, no, code, lines, draft)
        depth = max(state.depth + count_delimiters(code, '{', '}'), 0)
        return replace(state, depth=depth)

    if state.draft.header_end_line is None:
        return _header_line(state, no, code, lines, state.draft)
    return _body_line(state, no, code, lines)


def normalize_newlines(text: str) -> str:
    return text.replace('\r\n', '\n')


def scan_classes(text: str) -> List[ClassModel]:
    """Detect every top-level class of *text*, in document order."""
    text = normalize_newlines(text)
    lines = text.split('\n')
    codes = code_lines(text)

    state = ScanState()
    for no, code in enumerate(codes, 1):
        state = _step(state, no, code, lines)

    classes = list(state.classes)
    if state.draft is not None and state.draft.header_end_line is not None:
        # end of file reached inside a class body
        classes.append(_finalize(state.draft, None, lines))
    return classes


def scan(text: str) -> ScanResult:
    text = normalize_newlines(text)
    return ScanResult(classes=scan_classes(text), imports=ImportBlock.parse(text))


def find_classes(text: str, names: Optional[Iterable[str]] = None) -> List[ClassModel]:
    """All classes of *text*, or only those named in *names*."""
    classes = scan_classes(text)
    if names is None:
        return classes
    wanted = set(names)
    return [c for c in classes if c.name in wanted]
