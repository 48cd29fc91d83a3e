"""Leading directive block (import/export/part) of a Dart file.

The block is parsed once, may receive extra imports from the member
generators, and formats itself into canonical groups.  Comments between
directives end the block; everything after them is left alone.  Whether a
directive is complete is decided on the code-only view, so a trailing
``// comment`` stays attached to its statement.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .tokenizer import code_lines

_RE_DIRECTIVE = re.compile(r"^(?:import|export|part)(?:\s|'|\"|$)")
_RE_URI = re.compile(r"""['"]([^'"]*)['"]""")

# a line that can carry on an unterminated directive
_RE_CONTINUATION = re.compile(r"^(?:(?:show|hide|as|if|deferred|of)\b|['\"(),;])")
# a directive prefix that still expects more tokens
_RE_OPEN_END = re.compile(r"(?:,|\b(?:import|export|part|of|show|hide|as|if|deferred))$")


def directive_uri(statement: str) -> str:
    m = _RE_URI.search(statement)
    return m.group(1) if m else ''


def split_trailing_comment(line: str) -> Tuple[str, str]:
    """Split one directive line into its code and a trailing comment."""
    quote = None
    i = 0
    while i < len(line):
        c = line[i]
        if quote is not None:
            if c == '\\':
                i += 2
                continue
            if c == quote:
                quote = None
        elif c in ('"', "'"):
            quote = c
        elif line.startswith(('//', '/*'), i):
            return line[:i].rstrip(), line[i:]
        i += 1
    return line, ''


def _continues(pending_code: str, code: str) -> bool:
    return bool(_RE_CONTINUATION.match(code) or _RE_OPEN_END.search(pending_code))


def _join_statement(parts: List[str]) -> str:
    codes, comments = [], []
    for part in parts:
        code, comment = split_trailing_comment(part)
        codes.append(code)
        if comment:
            comments.append(comment)
    return ' '.join(codes + comments)


@dataclass
class ImportBlock:
    values: list = field(default_factory=list)
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    raw_text: str = ''

    @classmethod
    def parse(cls, text: str) -> ImportBlock:
        block = cls()
        if not text:
            return block

        lines = text.split('\n')
        codes = code_lines(text)
        pending: List[str] = []
        pending_code = ''
        pending_start = 0
        for idx, raw in enumerate(lines):
            line = raw.strip()
            code = codes[idx].strip()
            if pending:
                if not code or not _continues(pending_code, code):
                    # unterminated directive; the block ends before it
                    break
                pending.append(line)
                pending_code = f'{pending_code} {code}'
                if code.endswith(';'):
                    block._add(_join_statement(pending), pending_start, idx + 1)
                    pending = []
                continue

            if _RE_DIRECTIVE.match(code):
                if code.endswith(';'):
                    block._add(line, idx + 1, idx + 1)
                else:
                    pending = [line]
                    pending_code = code
                    pending_start = idx + 1
                continue

            if not line or code.startswith('library'):
                continue
            if not code and not block.values:
                # comment before the first directive
                continue
            break

        if block.has_previous_imports:
            block.raw_text = '\n'.join(lines[block.start_line - 1:block.end_line])
        return block

    def _add(self, statement: str, start_line: int, end_line: int) -> None:
        if self.start_line is None:
            self.start_line = start_line
        self.end_line = end_line
        self.values.append(statement)

    @property
    def has_imports(self) -> bool:
        return len(self.values) > 0

    @property
    def has_previous_imports(self) -> bool:
        return self.start_line is not None and self.end_line is not None

    def format(self, workspace_name: Optional[str] = None) -> str:
        if not self.has_imports:
            return ''

        dart_imports: List[str] = []
        package_imports: List[str] = []
        package_local_imports: List[str] = []
        relative_imports: List[str] = []
        exports: List[str] = []
        part_statements: List[str] = []

        local_prefix = f'package:{workspace_name}/' if workspace_name else None
        for statement in dict.fromkeys(self.values):
            uri = directive_uri(statement)
            if statement.startswith('export'):
                exports.append(statement)
            elif statement.startswith('part'):
                part_statements.append(statement)
            elif uri.startswith('dart:'):
                dart_imports.append(statement)
            elif local_prefix and uri.startswith(local_prefix):
                package_local_imports.append(statement)
            elif uri.startswith('package:'):
                package_imports.append(statement)
            else:
                relative_imports.append(statement)

        out: List[str] = []
        for bucket in (dart_imports, package_imports, package_local_imports,
                       relative_imports, exports, part_statements):
            if bucket:
                out.extend(sorted(bucket))
                out.append('')
        return '\n'.join(out).rstrip('\n')

    def should_change(self, workspace_name: Optional[str] = None) -> bool:
        if not self.has_imports:
            return False
        return self.raw_text != self.format(workspace_name)

    def includes(self, statement: str) -> bool:
        return any(split_trailing_comment(v)[0] == statement for v in self.values)

    def has_at_least_one_import(self, package_names: Iterable[str]) -> bool:
        return any(self.includes(f"import '{p}';") for p in package_names)

    def requires_import(self, statement_or_package: str,
                        valid_overrides: Iterable[str] = ()) -> None:
        """Add an import unless it, or one of *valid_overrides*, is present."""
        statement = statement_or_package
        if not statement.startswith('import'):
            statement = f"import '{statement}';"
        if not self.includes(statement) and not self.has_at_least_one_import(valid_overrides):
            self.values.append(statement)
