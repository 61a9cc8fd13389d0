# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the SpecML project configuration file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".specml.yaml"

DEFAULT_OUTPUT = "specml-build/ir.json"
DEFAULT_INCLUDE = ["**/*.spec"]


class WorkspaceConfigError(Exception):
    """Raised when a configuration file is invalid or cannot be loaded."""


@dataclass
class WorkspaceConfig:
    """The parsed configuration for a SpecML project.

    Attributes:
        output: Path of the IR document, relative to the project root.
        include: Glob patterns selecting spec files below the root.
        exclude: Glob patterns removed from the included files.
        jobs: Number of parser worker threads.
        warnings_as_errors: Whether any warning fails the run.
    """

    output: str = DEFAULT_OUTPUT
    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: list[str] = field(default_factory=list)
    jobs: int = 1
    warnings_as_errors: bool = False


def load_workspace_config(path: Path) -> WorkspaceConfig:
    """Load and parse a SpecML configuration file.

    Args:
        path: Path to the `.specml.yaml` file.

    Returns:
        A WorkspaceConfig instance populated from the file.

    Raises:
        WorkspaceConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WorkspaceConfigError(f"Config file not found: {path}") from None
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read config file: {exc}") from exc

    return _parse_workspace_config(text, source_label=str(path))


def find_workspace_config(root: Path) -> WorkspaceConfig:
    """Return the configuration of the project at *root*, or the defaults if it has none."""
    path = root / CONFIG_FILE_NAME
    if not path.exists():
        return WorkspaceConfig()
    return load_workspace_config(path)


def dump_workspace_config(config: WorkspaceConfig) -> str:
    """Render *config* as YAML text that :func:`load_workspace_config` accepts."""
    data = {
        "output": config.output,
        "include": list(config.include),
        "exclude": list(config.exclude),
        "jobs": config.jobs,
        "warnings-as-errors": config.warnings_as_errors,
    }
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


# ################
# Implementation
# ################

_KNOWN_KEYS = {"output", "include", "exclude", "jobs", "warnings-as-errors"}


def _parse_workspace_config(text: str, source_label: str = "<string>") -> WorkspaceConfig:
    """Parse configuration YAML text into a WorkspaceConfig.

    An empty document yields the defaults.

    Raises:
        WorkspaceConfigError: If the YAML is invalid, a key is unknown, or a
            value has the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkspaceConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return WorkspaceConfig()
    if not isinstance(data, dict):
        raise WorkspaceConfigError(f"{source_label}: config must be a YAML mapping")

    unknown = sorted(str(k) for k in data if k not in _KNOWN_KEYS)
    if unknown:
        raise WorkspaceConfigError(f"{source_label}: unknown config key(s): {', '.join(unknown)}")

    config = WorkspaceConfig()
    if "output" in data:
        config.output = _require_string(data, "output", source_label)
    if "include" in data:
        config.include = _require_string_list(data, "include", source_label)
    if "exclude" in data:
        config.exclude = _require_string_list(data, "exclude", source_label)
    if "jobs" in data:
        jobs = data["jobs"]
        # bool is a subclass of int; "jobs: yes" is not a worker count.
        if not isinstance(jobs, int) or isinstance(jobs, bool) or jobs < 1:
            raise WorkspaceConfigError(f"{source_label}: 'jobs' must be a positive integer")
        config.jobs = jobs
    if "warnings-as-errors" in data:
        value = data["warnings-as-errors"]
        if not isinstance(value, bool):
            raise WorkspaceConfigError(f"{source_label}: 'warnings-as-errors' must be a boolean")
        config.warnings_as_errors = value
    return config


def _require_string(mapping: dict[str, object], key: str, source_label: str) -> str:
    value = mapping[key]
    if not isinstance(value, str) or not value:
        raise WorkspaceConfigError(f"{source_label}: '{key}' must be a non-empty string")
    return value


def _require_string_list(mapping: dict[str, object], key: str, source_label: str) -> list[str]:
    value = mapping[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise WorkspaceConfigError(f"{source_label}: '{key}' must be a list of strings")
    return list(value)
