"""Generator: orchestrates scanning, member generation, planning and edits."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .config import GeneratorConfig
from .document import Document
from .emitter import emit_edits
from .generators.members import generate_members
from .models import ClassIssue, ClassModel, IssueKind
from .parsers.imports import ImportBlock
from .parsers.scanner import normalize_newlines, scan

NO_CLASSES_NOTICE = "No convertible dart classes were detected!"


@dataclass
class GenerationResult:
    """Everything one generation run produced."""
    classes: List[ClassModel] = field(default_factory=list)
    imports: ImportBlock = field(default_factory=ImportBlock)
    edits: list = field(default_factory=list)  # list of Edit
    issues: List[ClassIssue] = field(default_factory=list)
    workspace_name: Optional[str] = None

    @property
    def notice(self) -> Optional[str]:
        return NO_CLASSES_NOTICE if not self.classes else None

    @property
    def changed(self) -> bool:
        return len(self.edits) > 0


def _state_issue(cls: ClassModel) -> ClassIssue:
    return ClassIssue(
        class_name=cls.name,
        kind=IssueKind.NOT_CONVERTIBLE,
        message=f"{cls.name} couldn't be converted to a data class: State classes are not supported!",
    )


def generate_data_classes(
    text: str,
    config: Optional[GeneratorConfig] = None,
    project_name: Optional[str] = None,
    target_class_names: Optional[Iterable[str]] = None,
    flutter: Optional[bool] = None,
    verbose: bool = False,
) -> GenerationResult:
    """Plan the data class edits for one document snapshot.

    Invalid classes are reported as issues and left untouched; the run
    itself never fails on malformed Dart.
    """
    config = config or GeneratorConfig()
    text = normalize_newlines(text)
    lines = text.split('\n')
    scanned = scan(text)

    workspace_name = project_name or config.project_name
    if flutter is None:
        flutter = bool(config.flutter)

    classes = scanned.classes
    if target_class_names is not None:
        wanted = set(target_class_names)
        classes = [c for c in classes if c.name in wanted]

    result = GenerationResult(imports=scanned.imports, workspace_name=workspace_name)

    for cls in classes:
        if not cls.is_valid:
            result.issues.append(ClassIssue(cls.name, cls.issue_kind, cls.issue))
            if verbose:
                print(f"[generate] {cls.issue}")
            continue
        if cls.is_state:
            result.issues.append(_state_issue(cls))
            if verbose:
                print(f"[generate] skipping state class {cls.name}")
            continue

        generate_members(cls, result.imports, config, flutter)
        if not config.override.existing:
            cls.pending_replacements = []
        result.classes.append(cls)

        if verbose:
            added = ", new members added" if cls.pending_inserts else ""
            print(f"[generate] {cls.name}: {len(cls.fields)} fields, "
                  f"{len(cls.pending_replacements)} replaced{added}")

    if not result.classes:
        if verbose:
            print(f"[generate] {NO_CLASSES_NOTICE}")
        return result

    result.edits = emit_edits(lines, result.classes, result.imports, workspace_name)
    if verbose:
        print(f"[generate] {len(result.edits)} edits")
    return result


def run(document: Document, **kwargs) -> GenerationResult:
    """Generate against *document* and apply the edits as one batch."""
    result = generate_data_classes(document.get_text(), **kwargs)
    if result.edits:
        document.apply_edits(result.edits)
    return result
