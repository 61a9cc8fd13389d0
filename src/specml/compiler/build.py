# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compilation driver for a tree of spec files.

Every run is a full, pure compilation: files are discovered in sorted order,
scanned and parsed (optionally on a thread pool), and then pass through the
stage barriers in turn:

1. All files are parsed; if any file failed to scan or parse, every such
   error is reported and the run stops before import resolution.
2. Imports are resolved over the complete file set; unresolved imports and
   cycles are fatal.
3. Declarations are composed in topological order and the composed graph is
   validated. Composition and validation errors are reported together.
4. The IR document is emitted from the validated graph.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

from specml.compiler.composer import compose
from specml.compiler.imports import resolve_imports
from specml.compiler.ir import emit
from specml.compiler.parser import parse
from specml.errors import CompilationError, CompilerWarning, LexError, ParseError, SpecError
from specml.model.entities import ResolvedGraph, SpecFile
from specml.validation.checks import validate
from specml.workspace.config import WorkspaceConfig

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


@dataclass
class CompileResult:
    """Outcome of a successful compilation run.

    Attributes:
        graph: The composed and validated graph.
        ir: The emitted IR document.
        warnings: Every warning of the run, composition first.
        order: Files in compilation (topological) order.
    """

    graph: ResolvedGraph
    ir: dict[str, Any]
    warnings: list[CompilerWarning] = field(default_factory=list)
    order: list[str] = field(default_factory=list)


def discover_files(root: Path, include: list[str], exclude: list[str] | None = None) -> list[str]:
    """Return the root-relative POSIX paths of all spec files below *root*, sorted.

    Args:
        root: The project root directory.
        include: Glob patterns evaluated relative to *root*.
        exclude: Glob patterns matched against the relative paths; a leading
            ``**/`` also matches files directly below the root.
    """
    found: set[str] = set()
    for pattern in include:
        for path in root.glob(pattern):
            if path.is_file():
                found.add(path.relative_to(root).as_posix())
    excluded = exclude or []
    return sorted(rel for rel in found if not any(_matches(rel, pattern) for pattern in excluded))


def compile_sources(
    sources: dict[str, str],
    *,
    jobs: int = 1,
    warnings_as_errors: bool = False,
) -> CompileResult:
    """Compile an in-memory set of spec files.

    Args:
        sources: Mapping from root-relative path to file content. Iteration
            order is the discovery order and breaks ties between files that
            do not import each other.
        jobs: Number of parser worker threads.
        warnings_as_errors: Fail the run if any warning was recorded.

    Returns:
        A :class:`CompileResult` for the whole file set.

    Raises:
        CompilationError: With every diagnostic of the first failing stage
            (or of composition and validation together).
    """
    files = _parse_all(sources, jobs)

    import_graph = resolve_imports(files)

    composed = compose(files, import_graph)
    validation = validate(composed.graph, composed.rejected)
    errors = composed.errors + validation.errors
    warnings = composed.warnings + validation.warnings
    if errors:
        logger.info("Compilation failed with %d error(s)", len(errors))
        raise CompilationError(errors, warnings)
    if warnings_as_errors and warnings:
        logger.info("Compilation failed: %d warning(s) treated as errors", len(warnings))
        raise CompilationError([], warnings)

    return CompileResult(
        graph=composed.graph,
        ir=emit(composed.graph),
        warnings=warnings,
        order=list(import_graph.order),
    )


def compile_directory(root: Path, config: WorkspaceConfig | None = None) -> CompileResult:
    """Discover, read, and compile every spec file below *root*.

    Args:
        root: The project root directory.
        config: Project configuration; the defaults are used when omitted.

    Raises:
        CompilationError: On unreadable files or any compilation failure.
    """
    config = config or WorkspaceConfig()
    paths = discover_files(root, config.include, config.exclude)
    logger.info("Discovered %d spec file(s) under %s", len(paths), root)

    sources: dict[str, str] = {}
    errors: list[SpecError] = []
    for rel in paths:
        try:
            sources[rel] = (root / rel).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            errors.append(SpecError(f"cannot read file: {exc}", file=rel))
    if errors:
        raise CompilationError(errors)

    return compile_sources(sources, jobs=config.jobs, warnings_as_errors=config.warnings_as_errors)


# ################
# Implementation
# ################


def _matches(rel: str, pattern: str) -> bool:
    if fnmatch(rel, pattern):
        return True
    return pattern.startswith("**/") and fnmatch(rel, pattern[3:])


def _parse_one(item: tuple[str, str]) -> SpecFile | SpecError:
    path, text = item
    try:
        return parse(text, file=path)
    except (LexError, ParseError) as exc:
        logger.debug("Failed to parse %s: %s", path, exc)
        return exc


def _parse_all(sources: dict[str, str], jobs: int) -> list[SpecFile]:
    """Parse every file, collecting all scan and parse errors before failing."""
    items = list(sources.items())
    if jobs > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            results = list(executor.map(_parse_one, items))
    else:
        results = [_parse_one(item) for item in items]

    errors = [r for r in results if isinstance(r, SpecError)]
    if errors:
        raise CompilationError(errors)
    logger.debug("Parsed %d file(s) with %d job(s)", len(results), jobs)
    return [r for r in results if isinstance(r, SpecFile)]
