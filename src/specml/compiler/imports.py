# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Import graph resolution for parsed spec files.

Maps every ``import`` statement to a known file, builds the directed import
graph, and computes a deterministic topological order in which every file
comes after all files it imports.

Supported import path forms:

* ``@/segment/segment/file.data.spec``: relative to the compilation root.
* ``./file.spec`` / ``../dir/file.spec``: relative to the importing file.
* Root-relative paths without the ``.spec`` family suffix
  (``@/shared/data/base``) when exactly one known file matches.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Collection
from dataclasses import dataclass, field

from specml.errors import CompilationError, CyclicImportError, SpecError, UnresolvedImportError
from specml.model.entities import ImportDeclaration, SpecFile

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ImportEdge:
    """A directed edge recorded when *from_file* imports *to_file*."""

    from_file: str
    to_file: str


@dataclass
class ImportGraph:
    """The resolved import graph of one compilation run.

    Attributes:
        order: Every file, each one after all the files it imports.
        edges: Deduplicated import edges in discovery order.
    """

    order: list[str]
    edges: list[ImportEdge] = field(default_factory=list)

    def dependencies(self, file: str) -> list[str]:
        """Return the files directly imported by *file*, in import order."""
        return [e.to_file for e in self.edges if e.from_file == file]

    def transitive_dependencies(self, file: str) -> set[str]:
        """Return every file reachable from *file* through imports (excluding itself)."""
        adjacency: dict[str, list[str]] = {}
        for edge in self.edges:
            adjacency.setdefault(edge.from_file, []).append(edge.to_file)
        seen: set[str] = set()
        pending = list(adjacency.get(file, []))
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            pending.extend(adjacency.get(current, []))
        seen.discard(file)
        return seen


def resolve_import_path(import_path: str, importer: str, known_files: Collection[str]) -> str | None:
    """Resolve one raw import path to the identity of a known file.

    Args:
        import_path: The path as written after ``import``.
        importer: Root-relative path of the importing file.
        known_files: Root-relative paths of every file in the compilation.

    Returns:
        The matching root-relative path, or ``None`` if nothing matches.
    """
    if import_path.startswith("@/"):
        candidate = import_path[2:]
    elif import_path.startswith(("./", "../")):
        candidate = posixpath.join(posixpath.dirname(importer), import_path)
    else:
        candidate = import_path.lstrip("/")
    candidate = posixpath.normpath(candidate)
    if candidate.startswith(".."):
        return None
    if candidate in known_files:
        return candidate

    # Suffix-less form: "shared/data/base" matches "shared/data/base.data.spec".
    prefix = candidate + "."
    matches = [
        f for f in known_files if f.startswith(prefix) and f.endswith(".spec") and "/" not in f[len(prefix) :]
    ]
    if len(matches) == 1:
        return matches[0]
    return None


def resolve_imports(files: list[SpecFile]) -> ImportGraph:
    """Build the import graph and compute the compilation order.

    Args:
        files: Parsed files in discovery order. Discovery order breaks ties
            between independent files, which keeps builds reproducible.

    Returns:
        The resolved :class:`ImportGraph`.

    Raises:
        CompilationError: With one :class:`UnresolvedImportError` per import
            path that matches no file, or with a single
            :class:`CyclicImportError` holding the back-edge chain found by
            the depth-first traversal.
    """
    known = {f.path for f in files}
    errors: list[SpecError] = []
    edges: list[ImportEdge] = []
    statements: dict[ImportEdge, ImportDeclaration] = {}

    for spec_file in files:
        for imp in spec_file.imports:
            target = resolve_import_path(imp.path, spec_file.path, known)
            if target is None:
                errors.append(UnresolvedImportError(imp.path, file=spec_file.path, line=imp.line, column=imp.column))
                continue
            edge = ImportEdge(spec_file.path, target)
            if edge not in statements:
                statements[edge] = imp
                edges.append(edge)

    if errors:
        raise CompilationError(errors)

    order = _TopologicalSorter([f.path for f in files], edges, statements).sort()
    logger.debug("Compilation order: %s", ", ".join(order))
    return ImportGraph(order=order, edges=edges)


# ################
# Implementation
# ################


class _TopologicalSorter:
    """Depth-first post-order traversal with an explicit stack for cycle detection."""

    def __init__(
        self,
        files: list[str],
        edges: list[ImportEdge],
        statements: dict[ImportEdge, ImportDeclaration],
    ) -> None:
        self._files = files
        self._statements = statements
        self._adjacency: dict[str, list[str]] = {f: [] for f in files}
        for edge in edges:
            self._adjacency[edge.from_file].append(edge.to_file)
        self._order: list[str] = []
        self._done: set[str] = set()
        self._stack: list[str] = []
        self._on_stack: set[str] = set()

    def sort(self) -> list[str]:
        for f in self._files:
            self._visit(f)
        return self._order

    def _visit(self, root: str) -> None:
        if root in self._done:
            return
        # Frames of (file, index of the next dependency to visit); deep
        # import chains must not exhaust the interpreter call stack.
        frames: list[tuple[str, int]] = []
        self._push(root, frames)
        while frames:
            file, index = frames[-1]
            deps = self._adjacency[file]
            if index == len(deps):
                frames.pop()
                self._stack.pop()
                self._on_stack.discard(file)
                self._done.add(file)
                self._order.append(file)
                continue
            frames[-1] = (file, index + 1)
            dep = deps[index]
            if dep in self._done:
                continue
            if dep in self._on_stack:
                self._raise_cycle(dep)
            self._push(dep, frames)

    def _push(self, file: str, frames: list[tuple[str, int]]) -> None:
        frames.append((file, 0))
        self._stack.append(file)
        self._on_stack.add(file)

    def _raise_cycle(self, file: str) -> None:
        cycle = self._stack[self._stack.index(file) :] + [file]
        importer = self._stack[-1]
        stmt = self._statements[ImportEdge(importer, file)]
        raise CompilationError(
            [CyclicImportError(cycle, file=importer, line=stmt.line, column=stmt.column)]
        )
