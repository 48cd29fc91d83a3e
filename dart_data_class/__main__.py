"""CLI entry point for the Dart data class generator.

Usage:
    ddc [options] FILE
    python -m dart_data_class [options] FILE

Options:
    FILE                 Dart file to convert
    --config PATH        Path to data_class.yaml config file
    --class NAME         Only convert this class (repeatable)
    --project-name NAME  Package name used to group imports
    --flutter            Treat the file as part of a Flutter project
    --no-flutter         Treat the file as plain Dart
    --equatable          Make classes extend Equatable / use EquatableMixin
    --no-override        Only add missing members, never replace existing ones
    --write              Apply the edits to FILE (default: print them)
    --json               Print edits as JSON
    --quiet / -q         Suppress progress output
    --help / -h          Show this help
"""

from __future__ import annotations

import argparse
import json
import os
import sys


def _print_edits(edits) -> None:
    for edit in edits:
        print(f"@@ lines {edit.start_line}-{edit.end_line} @@")
        print(edit.text)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="ddc",
        description="Generate data class members for Dart classes",
    )
    parser.add_argument(
        "file",
        help="Dart file to convert",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to data_class.yaml configuration file",
    )
    parser.add_argument(
        "--class",
        dest="classes",
        action="append",
        default=None,
        help="Only convert the named class (repeatable)",
    )
    parser.add_argument(
        "--project-name",
        type=str,
        default=None,
        help="Package name used to group same-project imports",
    )
    parser.add_argument(
        "--flutter",
        action="store_true",
        default=False,
        help="Treat the file as part of a Flutter project",
    )
    parser.add_argument(
        "--no-flutter",
        action="store_true",
        default=False,
        help="Treat the file as plain Dart",
    )
    parser.add_argument(
        "--equatable",
        action="store_true",
        default=False,
        help="Use Equatable for equality",
    )
    parser.add_argument(
        "--no-override",
        action="store_true",
        default=False,
        help="Never replace existing members",
    )
    parser.add_argument(
        "--write",
        action="store_true",
        default=False,
        help="Apply the edits to the file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print edits as JSON",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress progress output",
    )

    args = parser.parse_args(argv)

    path = os.path.abspath(args.file)
    if not os.path.isfile(path):
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    from .config import find_config, load_config
    from .project import load_project

    project = load_project(path)
    repo_root = project.root or os.path.dirname(path)
    config_path = args.config or find_config(repo_root)
    config = load_config(config_path=config_path, repo_root=repo_root)

    # Apply CLI overrides
    if args.project_name:
        config.project_name = args.project_name
    if config.project_name is None:
        config.project_name = project.name
    if args.flutter:
        config.flutter = True
    elif args.no_flutter:
        config.flutter = False
    elif config.flutter is None:
        config.flutter = project.is_flutter
    if args.equatable:
        config.equatable.use_equatable = True
    if args.no_override:
        config.override.existing = False

    verbose = not args.quiet and not args.json

    from .document import FileDocument
    from .generator import generate_data_classes

    document = FileDocument(path)
    try:
        text = document.get_text()
    except UnicodeDecodeError as exc:
        print(f"Error: {path} is not valid UTF-8: {exc}", file=sys.stderr)
        return 1

    if verbose:
        print(f"[ddc] {path}")
        print(f"[config] {config_path or 'defaults'}")
        print(f"[ddc] project: {config.project_name} ({'flutter' if config.flutter else 'dart'})")

    result = generate_data_classes(
        text,
        config=config,
        target_class_names=args.classes,
        verbose=verbose,
    )

    for issue in result.issues:
        print(issue.message, file=sys.stderr)
    if result.notice:
        print(result.notice, file=sys.stderr)

    if args.json:
        print(json.dumps([e.to_dict() for e in result.edits], indent=2))
    elif not args.write:
        _print_edits(result.edits)

    if args.write and result.edits:
        try:
            document.apply_edits(result.edits)
        except ValueError as exc:
            print(f"Error: edits not applied: {exc}", file=sys.stderr)
            return 1
        if verbose:
            print(f"[ddc] wrote {len(result.edits)} edits to {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
