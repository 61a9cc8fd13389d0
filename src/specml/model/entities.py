# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Declarations and resolved entities for the SpecML semantic model.

The parser produces :class:`SpecFile` trees. The composer produces a separate
:class:`ResolvedGraph` built from deep copies, so no resolved object aliases
the raw AST.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

from specml.model.types import CopySource, Field

# ###############
# Public Interface
# ###############

HTTP_METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})


class DeclarationKind(Enum):
    """Whether a declaration describes a data shape or an HTTP endpoint."""

    DATA = "data"
    ENDPOINT = "endpoint"


class SectionRole(Enum):
    """The role of a request or response section inside an endpoint."""

    HEADERS = "headers"
    PARAMS = "params"
    QUERY = "query"
    BODY = "body"


class Section(BaseModel):
    """A ``headers``/``params``/``query``/``body`` block of an endpoint.

    A section is either an inline field list (optionally with copy sources)
    or a reference to a named entity such as ``body#Order``.
    """

    role: SectionRole
    copy_sources: list[CopySource] = _Field(default_factory=list)
    fields: list[Field] = _Field(default_factory=list)
    reference: str | None = None
    is_array: bool = False
    line: int = 0
    column: int = 0


class ResponseScenario(BaseModel):
    """One named response of an endpoint, e.g. ``success`` or ``not_found``."""

    name: str
    status: int
    headers: Section | None = None
    body: Section | None = None
    line: int = 0
    column: int = 0


class Declaration(BaseModel):
    """A named top-level block of a spec file."""

    name: str
    kind: DeclarationKind = DeclarationKind.DATA
    copy_sources: list[CopySource] = _Field(default_factory=list)
    fields: list[Field] = _Field(default_factory=list)
    method: str | None = None
    path: str | None = None
    sections: list[Section] = _Field(default_factory=list)
    responses: list[ResponseScenario] = _Field(default_factory=list)
    line: int = 0
    column: int = 0

    def section(self, role: SectionRole) -> Section | None:
        """Return the section with the given role, if declared."""
        for s in self.sections:
            if s.role == role:
                return s
        return None


class ImportDeclaration(BaseModel):
    """An ``import @/path/to/file.spec`` statement."""

    path: str
    line: int = 0
    column: int = 0


class SpecFile(BaseModel):
    """Top-level model representing the parsed contents of a single spec file."""

    path: str = ""
    imports: list[ImportDeclaration] = _Field(default_factory=list)
    declarations: list[Declaration] = _Field(default_factory=list)


class ResolvedEntity(BaseModel):
    """A data declaration after copy expansion: one flat, ordered field list."""

    model_config = ConfigDict(frozen=True)

    name: str
    file: str
    fields: list[Field] = _Field(default_factory=list)
    line: int = 0
    column: int = 0


class ResolvedSection(BaseModel):
    """An endpoint section after copy expansion and reference materialization."""

    model_config = ConfigDict(frozen=True)

    role: SectionRole
    fields: list[Field] = _Field(default_factory=list)
    reference: str | None = None
    is_array: bool = False
    line: int = 0
    column: int = 0


class ResolvedResponse(BaseModel):
    """A resolved response scenario."""

    model_config = ConfigDict(frozen=True)

    name: str
    status: int
    headers: ResolvedSection | None = None
    body: ResolvedSection | None = None


class ResolvedEndpoint(BaseModel):
    """An endpoint declaration with every section resolved."""

    model_config = ConfigDict(frozen=True)

    name: str
    file: str
    method: str
    path: str
    path_params: list[str] = _Field(default_factory=list)
    headers: ResolvedSection | None = None
    params: ResolvedSection | None = None
    query: ResolvedSection | None = None
    body: ResolvedSection | None = None
    responses: list[ResolvedResponse] = _Field(default_factory=list)
    line: int = 0
    column: int = 0


class ResolvedGraph(BaseModel):
    """The fully composed schema of one compilation run."""

    entities: dict[str, ResolvedEntity] = _Field(default_factory=dict)
    endpoints: dict[str, ResolvedEndpoint] = _Field(default_factory=dict)
    file_order: list[str] = _Field(default_factory=list)
