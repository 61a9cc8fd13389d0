# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project configuration for SpecML."""

from specml.workspace.config import (
    CONFIG_FILE_NAME,
    WorkspaceConfig,
    WorkspaceConfigError,
    dump_workspace_config,
    find_workspace_config,
    load_workspace_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "WorkspaceConfig",
    "WorkspaceConfigError",
    "dump_workspace_config",
    "find_workspace_config",
    "load_workspace_config",
]
