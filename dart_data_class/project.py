"""Dart project detection from ``pubspec.yaml``."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import yaml


@dataclass(frozen=True)
class DartProject:
    """The package a Dart file belongs to."""
    name: Optional[str]
    root: Optional[str]
    is_flutter: bool = False


def folder_project_name(folder: str) -> str:
    return os.path.basename(os.path.normpath(folder)).replace("-", "_")


def find_pubspec(path: str) -> Optional[str]:
    """Walk upwards from *path* to the nearest ``pubspec.yaml``."""
    current = os.path.abspath(path)
    if os.path.isfile(current):
        current = os.path.dirname(current)
    while True:
        candidate = os.path.join(current, "pubspec.yaml")
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def _read_pubspec(pubspec_path: str) -> dict:
    try:
        with open(pubspec_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        print(f"[project] could not read {pubspec_path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def load_project(path: str) -> DartProject:
    """Describe the project containing *path* (a file or directory).

    The name comes from ``pubspec.yaml``; without one, the folder name with
    ``-`` replaced by ``_`` is used.
    """
    pubspec_path = find_pubspec(path)
    if pubspec_path is None:
        folder = path if os.path.isdir(path) else os.path.dirname(os.path.abspath(path))
        return DartProject(name=folder_project_name(folder), root=None)

    root = os.path.dirname(pubspec_path)
    data = _read_pubspec(pubspec_path)
    name = data.get("name") or folder_project_name(root)

    deps = data.get("dependencies", {}) or {}
    is_flutter = isinstance(deps, dict) and "flutter" in deps

    return DartProject(name=str(name), root=root, is_flutter=is_flutter)
