# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Symbol table and composition of copy sources and references.

Files are processed in topological import order. Every data declaration is
flattened into a :class:`ResolvedEntity`: the fields of its copy sources come
first (in copy-statement order), followed by its own fields, and a local field
replaces an inherited one of the same name in place. Copy sources must
already be registered when they are used; references are checked once every
file has been composed, so forward and recursive references are legal.

All state lives in a :class:`Composer` instance scoped to one compilation
run. Resolved objects are built from deep copies and never alias the AST.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from specml.compiler.imports import ImportGraph
from specml.errors import (
    CompilerWarning,
    DuplicateNameError,
    SpecError,
    UnknownCopySourceError,
    UnknownReferenceError,
)
from specml.model.entities import (
    Declaration,
    DeclarationKind,
    ResolvedEndpoint,
    ResolvedEntity,
    ResolvedGraph,
    ResolvedResponse,
    ResolvedSection,
    Section,
    SectionRole,
    SpecFile,
)
from specml.model.types import CopySource, Field, ObjectTypeRef, ReferenceTypeRef, same_shape

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

PATH_PARAM_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


@dataclass
class ComposeResult:
    """Outcome of composing a whole file set.

    Attributes:
        graph: Registered entities and endpoints. Declarations rejected as
            duplicates are composed (so their errors are reported) but not
            registered.
        errors: Copy-source, reference, and duplicate-name errors in
            processing order.
        warnings: Override and visibility findings.
        rejected: Composed declarations that lost a duplicate-name clash;
            they are validated but never emitted.
    """

    graph: ResolvedGraph
    errors: list[SpecError] = field(default_factory=list)
    warnings: list[CompilerWarning] = field(default_factory=list)
    rejected: list[ResolvedEntity | ResolvedEndpoint] = field(default_factory=list)


def compose(files: list[SpecFile], graph: ImportGraph) -> ComposeResult:
    """Compose every declaration of *files* in the order given by *graph*.

    Args:
        files: All parsed files of the run.
        graph: The resolved import graph; ``graph.order`` drives processing.

    Returns:
        A :class:`ComposeResult`; callers decide whether errors are fatal.
    """
    return Composer(graph).compose(files)


class Composer:
    """Per-run symbol table and composition engine."""

    def __init__(self, graph: ImportGraph | None = None) -> None:
        self._graph = graph
        self._entities: dict[str, ResolvedEntity] = {}
        self._endpoints: dict[str, ResolvedEndpoint] = {}
        # Every registered name (data or endpoint) -> declaring file.
        self._owners: dict[str, str] = {}
        # Composed entities including rejected duplicates, for reference checks.
        self._composed: list[ResolvedEntity] = []
        self._composed_endpoints: list[ResolvedEndpoint] = []
        self._visible: dict[str, set[str]] = {}
        self.errors: list[SpecError] = []
        self.warnings: list[CompilerWarning] = []

    def lookup(self, name: str) -> ResolvedEntity | None:
        """Return the registered entity called *name*, if any."""
        return self._entities.get(name)

    def compose(self, files: list[SpecFile]) -> ComposeResult:
        """Compose *files* and check every reference against the full table."""
        by_path = {f.path: f for f in files}
        order = self._graph.order if self._graph is not None else [f.path for f in files]

        for path in order:
            for decl in by_path[path].declarations:
                registered = self._register_name(decl, path)
                if decl.kind == DeclarationKind.DATA:
                    entity = self.resolve_entity(decl, path)
                    self._composed.append(entity)
                    if registered:
                        self._entities[decl.name] = entity
                else:
                    endpoint = self._compose_endpoint(decl, path)
                    self._composed_endpoints.append(endpoint)
                    if registered:
                        self._endpoints[decl.name] = endpoint

        for entity in self._composed:
            self._check_field_references(entity.name, entity.fields, entity.file, prefix="")
        rejected: list[ResolvedEntity | ResolvedEndpoint] = [
            entity for entity in self._composed if self._entities.get(entity.name) is not entity
        ]
        for endpoint in self._composed_endpoints:
            finished = self._finish_endpoint(endpoint)
            if self._endpoints.get(endpoint.name) is endpoint:
                self._endpoints[endpoint.name] = finished
            else:
                rejected.append(finished)

        logger.debug(
            "Composed %d entities and %d endpoints from %d files",
            len(self._entities),
            len(self._endpoints),
            len(order),
        )
        return ComposeResult(
            graph=ResolvedGraph(entities=dict(self._entities), endpoints=dict(self._endpoints), file_order=list(order)),
            errors=list(self.errors),
            warnings=list(self.warnings),
            rejected=rejected,
        )

    def resolve_entity(self, decl: Declaration, file: str) -> ResolvedEntity:
        """Flatten one data declaration against the current symbol table.

        Resolving a declaration that has no copy sources (for example one
        built from an already resolved entity) reproduces its fields.
        """
        fields = self._flatten(decl.name, decl.copy_sources, decl.fields, file)
        return ResolvedEntity(name=decl.name, file=file, fields=fields, line=decl.line, column=decl.column)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _register_name(self, decl: Declaration, file: str) -> bool:
        first_file = self._owners.get(decl.name)
        if first_file is not None:
            self.errors.append(DuplicateNameError(decl.name, first_file, file, line=decl.line, column=decl.column))
            return False
        self._owners[decl.name] = file
        return True

    # ------------------------------------------------------------------
    # Flattening
    # ------------------------------------------------------------------

    def _flatten(self, owner: str, copy_sources: list[CopySource], fields: list[Field], file: str) -> list[Field]:
        merged: list[Field] = []
        index: dict[str, int] = {}
        inherited: set[str] = set()

        for cs in copy_sources:
            source = self._lookup_copy_source(owner, cs, file)
            if source is None:
                continue
            for f in source.fields:
                if f.name in index:
                    self._warn(
                        "CopyCollision",
                        f"'{owner}': field '{f.name}' from '{cs.name}' is already copied from an earlier source;"
                        " the first one is kept",
                        file,
                        cs.line,
                        cs.column,
                    )
                    continue
                index[f.name] = len(merged)
                inherited.add(f.name)
                merged.append(f.model_copy(deep=True, update={"inherited_from": f.inherited_from or source.name}))

        for f in fields:
            resolved = self._resolve_field(owner, f, file)
            slot = index.get(f.name)
            if slot is None:
                index[f.name] = len(merged)
                merged.append(resolved)
                continue
            previous = merged[slot]
            if f.name in inherited:
                inherited.discard(f.name)
                if not same_shape(previous, resolved):
                    self._warn(
                        "TypeChangingOverride",
                        f"'{owner}': field '{f.name}' overrides the inherited field from"
                        f" '{previous.inherited_from}' with a different type",
                        file,
                        f.line,
                        f.column,
                    )
            else:
                self._warn(
                    "DuplicateField",
                    f"'{owner}': field '{f.name}' is declared more than once; the last declaration wins",
                    file,
                    f.line,
                    f.column,
                )
            merged[slot] = resolved
        return merged

    def _resolve_field(self, owner: str, f: Field, file: str) -> Field:
        if isinstance(f.type, ObjectTypeRef):
            nested = self._flatten(owner, f.type.copy_sources, f.type.fields, file)
            return f.model_copy(deep=True, update={"type": ObjectTypeRef(fields=nested)})
        return f.model_copy(deep=True)

    def _lookup_copy_source(self, owner: str, cs: CopySource, file: str) -> ResolvedEntity | None:
        source = self._entities.get(cs.name)
        if source is None:
            self.errors.append(UnknownCopySourceError(owner, cs.name, file=file, line=cs.line, column=cs.column))
            return None
        self._check_visibility(cs.name, file, cs.line, cs.column)
        return source

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def _compose_endpoint(self, decl: Declaration, file: str) -> ResolvedEndpoint:
        sections = {s.role: self._compose_section(decl.name, s, file) for s in decl.sections}
        responses = [
            ResolvedResponse(
                name=r.name,
                status=r.status,
                headers=self._compose_section(decl.name, r.headers, file) if r.headers else None,
                body=self._compose_section(decl.name, r.body, file) if r.body else None,
            )
            for r in decl.responses
        ]
        path = decl.path or ""
        return ResolvedEndpoint(
            name=decl.name,
            file=file,
            method=decl.method or "",
            path=path,
            path_params=PATH_PARAM_RE.findall(path),
            headers=sections.get(SectionRole.HEADERS),
            params=sections.get(SectionRole.PARAMS),
            query=sections.get(SectionRole.QUERY),
            body=sections.get(SectionRole.BODY),
            responses=responses,
            line=decl.line,
            column=decl.column,
        )

    def _compose_section(self, owner: str, section: Section, file: str) -> ResolvedSection:
        # Reference sections are materialized once every entity is known.
        fields = [] if section.reference else self._flatten(owner, section.copy_sources, section.fields, file)
        return ResolvedSection(
            role=section.role,
            fields=fields,
            reference=section.reference,
            is_array=section.is_array,
            line=section.line,
            column=section.column,
        )

    def _finish_endpoint(self, endpoint: ResolvedEndpoint) -> ResolvedEndpoint:
        """Check references of an endpoint and materialize reference sections."""
        updates: dict[str, object] = {}
        for role in SectionRole:
            section = getattr(endpoint, role.value)
            if section is not None:
                updates[role.value] = self._finish_section(endpoint, section, role.value)
        updates["responses"] = [
            r.model_copy(
                update={
                    "headers": self._finish_section(endpoint, r.headers, f"response.{r.name}.headers")
                    if r.headers
                    else None,
                    "body": self._finish_section(endpoint, r.body, f"response.{r.name}.body") if r.body else None,
                }
            )
            for r in endpoint.responses
        ]
        return endpoint.model_copy(update=updates)

    def _finish_section(self, endpoint: ResolvedEndpoint, section: ResolvedSection, label: str) -> ResolvedSection:
        if section.reference is None:
            self._check_field_references(endpoint.name, section.fields, endpoint.file, prefix=f"{label}.")
            return section
        target = self._resolve_reference(label, section.reference, endpoint.file, section.line, section.column)
        if target is None:
            return section
        return section.model_copy(update={"fields": [f.model_copy(deep=True) for f in target.fields]})

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def _check_field_references(self, owner: str, fields: list[Field], file: str, prefix: str) -> None:
        for f in fields:
            # Copied fields were checked where they were declared.
            if f.inherited_from is not None:
                continue
            if isinstance(f.type, ReferenceTypeRef):
                self._resolve_reference(prefix + f.name, f.type.target, file, f.line, f.column)
            elif isinstance(f.type, ObjectTypeRef):
                self._check_field_references(owner, f.type.fields, file, prefix=f"{prefix}{f.name}.")

    def _resolve_reference(self, label: str, name: str, file: str, line: int, column: int) -> ResolvedEntity | None:
        target = self._entities.get(name)
        if target is not None:
            self._check_visibility(name, file, line, column)
            return target
        reason = "is an endpoint, not a data declaration" if name in self._endpoints else "is not defined"
        self.errors.append(UnknownReferenceError(label, name, reason=reason, file=file, line=line, column=column))
        return None

    def _check_visibility(self, name: str, file: str, line: int, column: int) -> None:
        owner_file = self._owners.get(name)
        if self._graph is None or owner_file is None or owner_file == file:
            return
        visible = self._visible.get(file)
        if visible is None:
            visible = self._graph.transitive_dependencies(file)
            self._visible[file] = visible
        if owner_file not in visible:
            self._warn(
                "UnimportedName",
                f"'{name}' is declared in '{owner_file}', which '{file}' does not import",
                file,
                line,
                column,
            )

    def _warn(self, kind: str, message: str, file: str, line: int, column: int) -> None:
        self.warnings.append(CompilerWarning(kind=kind, message=message, file=file, line=line, column=column))
