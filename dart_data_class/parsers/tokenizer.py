"""State-machine tokenizer producing a code-only view of Dart source.

Comments are dropped and string bodies are blanked (quotes kept), while
every newline survives so that line ``n`` of the view is line ``n`` of the
original text.  Brace and parenthesis counting is done on this view.
"""

from __future__ import annotations

from enum import Enum, auto
from functools import lru_cache
from typing import List


class _TokState(Enum):
    CODE = auto()
    LINE_COMMENT = auto()
    BLOCK_COMMENT = auto()
    STRING_SQ = auto()        # single-quoted  '...'
    STRING_DQ = auto()        # double-quoted  "..."
    STRING_TSQ = auto()       # triple single  '''...'''
    STRING_TDQ = auto()       # triple double  """..."""
    RAW_SQ = auto()
    RAW_DQ = auto()
    RAW_TSQ = auto()
    RAW_TDQ = auto()


_CLOSERS = {
    _TokState.STRING_SQ: "'",
    _TokState.STRING_DQ: '"',
    _TokState.STRING_TSQ: "'''",
    _TokState.STRING_TDQ: '"""',
    _TokState.RAW_SQ: "'",
    _TokState.RAW_DQ: '"',
    _TokState.RAW_TSQ: "'''",
    _TokState.RAW_TDQ: '"""',
}

_RAW_STATES = frozenset({
    _TokState.RAW_SQ, _TokState.RAW_DQ, _TokState.RAW_TSQ, _TokState.RAW_TDQ,
})


def _is_escaped(src: str, pos: int) -> bool:
    n = 0
    p = pos - 1
    while p >= 0 and src[p] == '\\':
        n += 1
        p -= 1
    return n % 2 == 1


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch in ('_', '$')


@lru_cache(maxsize=256)
def code_view(source: str) -> str:
    """Return *source* with comments removed and string contents blanked.

    Quotes are kept so a string literal still reads as ``''`` in the view.
    Code inside ``${...}`` interpolation belongs to the string and is
    blanked as well.
    """
    result: list[str] = []
    i = 0
    n = len(source)
    state = _TokState.CODE
    # brace depth of every open ${...}; non-empty means we are inside a string
    interp_stack: list[int] = []
    interp_return: list[_TokState] = []

    def _emit(ch: str):
        if ch == '\n' or not interp_stack:
            result.append(ch)

    while i < n:
        c = source[i]

        # --- interpolation brace tracking ---
        if interp_stack and state == _TokState.CODE:
            if c == '{':
                interp_stack[-1] += 1; i += 1; continue
            if c == '}':
                interp_stack[-1] -= 1
                if interp_stack[-1] == 0:
                    interp_stack.pop()
                    state = interp_return.pop()
                i += 1; continue

        # ============ CODE ============
        if state == _TokState.CODE:
            if c == '/' and i + 1 < n and source[i + 1] == '/':
                state = _TokState.LINE_COMMENT; i += 2; continue
            if c == '/' and i + 1 < n and source[i + 1] == '*':
                state = _TokState.BLOCK_COMMENT; i += 2; continue
            if (c == 'r' and i + 1 < n and source[i + 1] in ('"', "'")
                    and (i == 0 or not _is_ident_char(source[i - 1]))):
                q = source[i + 1]
                if source[i + 1:i + 4] == q * 3:
                    state = _TokState.RAW_TSQ if q == "'" else _TokState.RAW_TDQ
                    _emit(q * 3); i += 4; continue
                state = _TokState.RAW_SQ if q == "'" else _TokState.RAW_DQ
                _emit(q); i += 2; continue
            if c in ('"', "'"):
                if source[i:i + 3] == c * 3:
                    state = _TokState.STRING_TSQ if c == "'" else _TokState.STRING_TDQ
                    _emit(c * 3); i += 3; continue
                state = _TokState.STRING_SQ if c == "'" else _TokState.STRING_DQ
                _emit(c); i += 1; continue
            _emit(c); i += 1; continue

        # ============ COMMENTS ============
        if state == _TokState.LINE_COMMENT:
            if c == '\n':
                state = _TokState.CODE
                _emit('\n')
            i += 1; continue

        if state == _TokState.BLOCK_COMMENT:
            if c == '*' and i + 1 < n and source[i + 1] == '/':
                state = _TokState.CODE; i += 2; continue
            if c == '\n':
                _emit('\n')
            i += 1; continue

        # ============ STRINGS ============
        closer = _CLOSERS[state]
        if source.startswith(closer, i) and (
                state in _RAW_STATES or not _is_escaped(source, i)):
            _emit(closer); state = _TokState.CODE; i += len(closer); continue
        if (state not in _RAW_STATES and c == '$' and i + 1 < n
                and source[i + 1] == '{' and not _is_escaped(source, i)):
            interp_stack.append(1)
            interp_return.append(state)
            state = _TokState.CODE; i += 2; continue
        if c == '\n':
            _emit('\n')
        i += 1

    return ''.join(result)


def code_lines(source: str) -> List[str]:
    """Code-only view of *source*, split into lines aligned with the source."""
    return code_view(source).split('\n')


def count_delimiters(code: str, opening: str, closing: str) -> int:
    """Net nesting change of one code-only line for a delimiter pair."""
    return code.count(opening) - code.count(closing)


def split_top_level(text: str, separator: str = ',') -> List[str]:
    """Split *text* on *separator* outside of any bracket pair."""
    parts: list[str] = []
    depth = 0
    current = ''
    for c in text:
        if c in ('(', '<', '[', '{'):
            depth += 1
        elif c in (')', '>', ']', '}'):
            depth -= 1
        elif c == separator and depth == 0:
            p = current.strip()
            if p:
                parts.append(p)
            current = ''
            continue
        current += c
    p = current.strip()
    if p:
        parts.append(p)
    return parts
