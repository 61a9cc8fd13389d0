# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Semantic model for SpecML (declarations, fields, resolved entities)."""

from specml.model.entities import (
    HTTP_METHODS,
    Declaration,
    DeclarationKind,
    ImportDeclaration,
    ResolvedEndpoint,
    ResolvedEntity,
    ResolvedGraph,
    ResolvedResponse,
    ResolvedSection,
    ResponseScenario,
    Section,
    SectionRole,
    SpecFile,
)
from specml.model.types import (
    Constraint,
    CopySource,
    Field,
    LiteralValue,
    ObjectTypeRef,
    PrimitiveType,
    PrimitiveTypeRef,
    ReferenceTypeRef,
    TypeRef,
    base_type_name,
    same_shape,
)

__all__ = [
    # Type system
    "PrimitiveType",
    "PrimitiveTypeRef",
    "ObjectTypeRef",
    "ReferenceTypeRef",
    "TypeRef",
    "LiteralValue",
    "CopySource",
    "Constraint",
    "Field",
    "base_type_name",
    "same_shape",
    # Declarations
    "HTTP_METHODS",
    "DeclarationKind",
    "SectionRole",
    "Section",
    "ResponseScenario",
    "Declaration",
    "ImportDeclaration",
    "SpecFile",
    # Resolved graph
    "ResolvedEntity",
    "ResolvedSection",
    "ResolvedResponse",
    "ResolvedEndpoint",
    "ResolvedGraph",
]
