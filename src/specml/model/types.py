# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Type system representations for the SpecML semantic model."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############


class PrimitiveType(Enum):
    """Primitive base types supported by the SpecML type system."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


# A literal as written in a constraint argument or an allowed-value set.
# Numeric tokens keep their numeric type so enum closure checks can tell
# ``(1|2)`` from ``(one|two)``.
LiteralValue = str | int | float


class CopySource(BaseModel):
    """A ``>Name`` inclusion recorded by the parser and expanded by the composer."""

    name: str
    line: int = 0
    column: int = 0


class Constraint(BaseModel):
    """A named rule such as ``min:1`` or ``uppercase`` attached to a field."""

    name: str
    value: LiteralValue | None = None


class PrimitiveTypeRef(BaseModel):
    """Reference to a primitive type."""

    kind: Literal["primitive"] = "primitive"
    primitive: PrimitiveType


class ObjectTypeRef(BaseModel):
    """An inline nested object; copy sources are empty once resolved."""

    kind: Literal["object"] = "object"
    copy_sources: list[CopySource] = _Field(default_factory=list)
    fields: list[Field] = _Field(default_factory=list)


class ReferenceTypeRef(BaseModel):
    """A link to a named data declaration (``#Name`` or a bare type name)."""

    kind: Literal["reference"] = "reference"
    target: str


# A field type: primitive, nested object, or reference to a named entity.
# The `kind` discriminator field enables fast, unambiguous deserialization.
TypeRef = Annotated[
    PrimitiveTypeRef | ObjectTypeRef | ReferenceTypeRef,
    _Field(discriminator="kind"),
]


class Field(BaseModel):
    """A named, typed member of an entity, nested object, or endpoint section.

    ``is_array`` is the multiplicity flag: ``#Item[]`` is a reference field
    with ``is_array`` set, ``items[] { ... }`` an array of nested objects.
    ``inherited_from`` names the entity a copied field was declared in.
    """

    name: str
    type: TypeRef
    optional: bool = False
    is_array: bool = False
    constraints: list[Constraint] = _Field(default_factory=list)
    enum_values: list[LiteralValue] | None = None
    inherited_from: str | None = None
    line: int = 0
    column: int = 0


def base_type_name(type_ref: TypeRef) -> str:
    """Return the base type name used in diagnostics and the IR."""
    if isinstance(type_ref, PrimitiveTypeRef):
        return type_ref.primitive.value
    return type_ref.kind


def same_shape(a: Field, b: Field) -> bool:
    """Return True if two fields agree on base type, reference target, and multiplicity."""
    if base_type_name(a.type) != base_type_name(b.type) or a.is_array != b.is_array:
        return False
    if isinstance(a.type, ReferenceTypeRef) and isinstance(b.type, ReferenceTypeRef):
        return a.type.target == b.type.target
    return True


# Resolve forward references for models that use TypeRef.
ObjectTypeRef.model_rebuild()
Field.model_rebuild()
