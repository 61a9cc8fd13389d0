# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Emission and reading of the SpecML intermediate representation (IR).

The IR is a language-agnostic JSON document describing every resolved entity
and endpoint. Entity and endpoint mappings are sorted by name and field lists
keep their resolved order, so equal input always produces byte-identical
output. The format is versioned so that downstream generators can detect
schema changes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from specml.model.entities import ResolvedEndpoint, ResolvedGraph, ResolvedResponse, ResolvedSection
from specml.model.types import Constraint, Field, ObjectTypeRef, ReferenceTypeRef, base_type_name

# ###############
# Public Interface
# ###############

IR_FORMAT_VERSION = "1"


def emit(graph: ResolvedGraph) -> dict[str, Any]:
    """Build the IR document for a composed and validated graph."""
    sources = {name: e.file for name, e in graph.entities.items()}
    sources.update({name: e.file for name, e in graph.endpoints.items()})
    return {
        "version": IR_FORMAT_VERSION,
        "files": list(graph.file_order),
        "sources": dict(sorted(sources.items())),
        "entities": {
            name: [_field_to_dict(f) for f in graph.entities[name].fields] for name in sorted(graph.entities)
        },
        "endpoints": {name: _endpoint_to_dict(graph.endpoints[name]) for name in sorted(graph.endpoints)},
    }


def serialize(graph: ResolvedGraph) -> str:
    """Serialize the IR of *graph* to an indented JSON string."""
    return json.dumps(emit(graph), indent=2) + "\n"


def deserialize(data: str) -> dict[str, Any]:
    """Parse an IR document from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize`.

    Returns:
        The IR document as plain dictionaries and lists.

    Raises:
        ValueError: If the IR format version is not recognised.
    """
    obj = json.loads(data)
    version = obj.get("version") if isinstance(obj, dict) else None
    if version != IR_FORMAT_VERSION:
        raise ValueError(f"Unsupported IR format version: {version!r}")
    return obj


def write_ir(graph: ResolvedGraph, path: Path) -> None:
    """Write the IR of *graph* to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(graph), encoding="utf-8")


def read_ir(path: Path) -> dict[str, Any]:
    """Read and check an IR document from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))


# ################
# Implementation
# ################


def _constraint_to_dict(constraint: Constraint) -> dict[str, Any]:
    d: dict[str, Any] = {"name": constraint.name}
    if constraint.value is not None:
        d["value"] = constraint.value
    return d


def _field_to_dict(f: Field) -> dict[str, Any]:
    d: dict[str, Any] = {
        "name": f.name,
        "type": base_type_name(f.type),
        "optional": f.optional,
        "array": f.is_array,
        "constraints": [_constraint_to_dict(c) for c in f.constraints],
    }
    if f.enum_values is not None:
        d["enum"] = list(f.enum_values)
    if isinstance(f.type, ReferenceTypeRef):
        d["ref"] = f.type.target
    elif isinstance(f.type, ObjectTypeRef):
        d["fields"] = [_field_to_dict(nested) for nested in f.type.fields]
    if f.inherited_from is not None:
        d["inheritedFrom"] = f.inherited_from
    return d


def _fields_to_list(section: ResolvedSection | None) -> list[dict[str, Any]]:
    if section is None:
        return []
    return [_field_to_dict(f) for f in section.fields]


def _body_to_dict(section: ResolvedSection | None) -> dict[str, Any] | None:
    if section is None:
        return None
    return {
        "ref": section.reference,
        "array": section.is_array,
        "fields": [_field_to_dict(f) for f in section.fields],
    }


def _response_to_dict(response: ResolvedResponse) -> dict[str, Any]:
    return {
        "status": response.status,
        "headers": _fields_to_list(response.headers),
        "body": _body_to_dict(response.body),
    }


def _endpoint_to_dict(endpoint: ResolvedEndpoint) -> dict[str, Any]:
    return {
        "method": endpoint.method,
        "path": endpoint.path,
        "pathParams": list(endpoint.path_params),
        "headers": _fields_to_list(endpoint.headers),
        "params": _fields_to_list(endpoint.params),
        "query": _fields_to_list(endpoint.query),
        "body": _body_to_dict(endpoint.body),
        "responses": {r.name: _response_to_dict(r) for r in endpoint.responses},
    }
