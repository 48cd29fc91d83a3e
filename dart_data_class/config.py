"""Configuration loading for data class generation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

import yaml

CONFIG_FILE_NAME = "data_class.yaml"


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

@dataclass
class MembersConfig:
    """Which members are generated."""
    constructor: bool = True
    copy_with: bool = True
    to_map: bool = True
    from_map: bool = True
    to_json: bool = True
    from_json: bool = True
    to_string: bool = True
    equality: bool = True
    hash_code: bool = True
    props: bool = True


@dataclass
class EquatableConfig:
    use_equatable: bool = False


@dataclass
class OverrideConfig:
    # replace existing members whose text differs from the generated one
    existing: bool = True


# ---------------------------------------------------------------------------
# Top-level Config
# ---------------------------------------------------------------------------

@dataclass
class GeneratorConfig:
    version: str = "1.0"
    project_name: Optional[str] = None
    flutter: Optional[bool] = None  # None: detect from pubspec.yaml
    members: MembersConfig = field(default_factory=MembersConfig)
    equatable: EquatableConfig = field(default_factory=EquatableConfig)
    override: OverrideConfig = field(default_factory=OverrideConfig)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def _apply_dict(obj, data: dict):
    """Apply dictionary values to a dataclass instance, recursively."""
    if not isinstance(data, dict):
        return
    for key, value in data.items():
        if hasattr(obj, key):
            current = getattr(obj, key)
            if hasattr(current, '__dataclass_fields__') and isinstance(value, dict):
                _apply_dict(current, value)
            else:
                setattr(obj, key, value)


def find_config(repo_root: str) -> Optional[str]:
    """Return the first existing config file below *repo_root*.

    Search order:
      1. ``data_class.yaml``
      2. ``analysis/data_class.yaml``
    """
    candidates = [
        os.path.join(repo_root, CONFIG_FILE_NAME),
        os.path.join(repo_root, "analysis", CONFIG_FILE_NAME),
    ]
    for candidate in candidates:
        if os.path.isfile(candidate):
            return candidate
    return None


def load_config(config_path: Optional[str] = None, repo_root: Optional[str] = None) -> GeneratorConfig:
    """Load generator configuration from YAML.

    *repo_root* defaults to cwd and is only used when *config_path* is None.
    Missing files yield the defaults.
    """
    if repo_root is None:
        repo_root = os.getcwd()

    config = GeneratorConfig()

    if config_path is None:
        config_path = find_config(repo_root)

    if config_path and os.path.isfile(config_path):
        with open(config_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if "version" in data:
            config.version = str(data["version"])
        if "project_name" in data:
            config.project_name = data["project_name"] or None
        if "flutter" in data:
            config.flutter = data["flutter"]
        if "members" in data:
            _apply_dict(config.members, data["members"])
        if "equatable" in data:
            _apply_dict(config.equatable, data["equatable"])
        if "override" in data:
            _apply_dict(config.override, data["override"])

    return config
