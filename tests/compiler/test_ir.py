# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for IR emission, serialization, and reading."""

import json
from pathlib import Path
from typing import Any

import pytest

from specml.compiler.composer import compose
from specml.compiler.imports import resolve_imports
from specml.compiler.ir import IR_FORMAT_VERSION, deserialize, emit, read_ir, serialize, write_ir
from specml.compiler.parser import parse
from specml.model.entities import ResolvedGraph

# ###############
# Test Helpers
# ###############


def _graph(sources: dict[str, str]) -> ResolvedGraph:
    files = [parse(text, file=path) for path, text in sources.items()]
    result = compose(files, resolve_imports(files))
    assert result.errors == []
    return result.graph


def _emit(source: str) -> dict[str, Any]:
    return emit(_graph({"test.spec": source}))


_SOURCE = """\
Timestamps { createdAt string<isISO> }
Money { amount number<min:0>; currency string<length:3>(USD|EUR) }
Order {
  >Timestamps
  id string<ulid>
  items[] { sku string; quantity number }
  total#Money
  discount? Money
}
GetOrder {
  method GET
  path /orders/:orderId
  params { orderId string }
  response {
    ok { status 200; headers { X-Request-ID string }; body#Order }
    list { status 206; body#Order[] }
  }
}
"""


# ###############
# Document Shape
# ###############


class TestDocument:
    def test_top_level_keys(self) -> None:
        document = _emit(_SOURCE)
        assert list(document) == ["version", "files", "sources", "entities", "endpoints"]
        assert document["version"] == IR_FORMAT_VERSION
        assert document["files"] == ["test.spec"]

    def test_entities_and_endpoints_are_sorted(self) -> None:
        document = _emit(_SOURCE)
        assert list(document["entities"]) == ["Money", "Order", "Timestamps"]
        assert list(document["endpoints"]) == ["GetOrder"]
        assert list(document["sources"]) == ["GetOrder", "Money", "Order", "Timestamps"]
        assert set(document["sources"].values()) == {"test.spec"}

    def test_field_order_is_preserved(self) -> None:
        order = _emit(_SOURCE)["entities"]["Order"]
        assert [f["name"] for f in order] == ["createdAt", "id", "items", "total", "discount"]


# ###############
# Fields
# ###############


class TestFields:
    def test_primitive_field(self) -> None:
        money = _emit(_SOURCE)["entities"]["Money"]
        assert money[0] == {
            "name": "amount",
            "type": "number",
            "optional": False,
            "array": False,
            "constraints": [{"name": "min", "value": 0}],
        }

    def test_enum_values(self) -> None:
        currency = _emit(_SOURCE)["entities"]["Money"][1]
        assert currency["enum"] == ["USD", "EUR"]
        assert currency["constraints"] == [{"name": "length", "value": 3}]

    def test_inherited_field(self) -> None:
        created = _emit(_SOURCE)["entities"]["Order"][0]
        assert created["inheritedFrom"] == "Timestamps"
        assert created["constraints"] == [{"name": "isISO"}]

    def test_nested_object_array(self) -> None:
        items = _emit(_SOURCE)["entities"]["Order"][2]
        assert items["type"] == "object"
        assert items["array"] is True
        assert [f["name"] for f in items["fields"]] == ["sku", "quantity"]

    def test_references(self) -> None:
        order = _emit(_SOURCE)["entities"]["Order"]
        total, discount = order[3], order[4]
        assert (total["type"], total["ref"], total["optional"]) == ("reference", "Money", False)
        assert (discount["type"], discount["ref"], discount["optional"]) == ("reference", "Money", True)
        assert "fields" not in total


# ###############
# Endpoints
# ###############


class TestEndpoints:
    def test_endpoint_shape(self) -> None:
        endpoint = _emit(_SOURCE)["endpoints"]["GetOrder"]
        assert endpoint["method"] == "GET"
        assert endpoint["path"] == "/orders/:orderId"
        assert endpoint["pathParams"] == ["orderId"]
        assert [f["name"] for f in endpoint["params"]] == ["orderId"]
        assert endpoint["headers"] == []
        assert endpoint["query"] == []
        assert endpoint["body"] is None

    def test_responses(self) -> None:
        responses = _emit(_SOURCE)["endpoints"]["GetOrder"]["responses"]
        assert list(responses) == ["ok", "list"]
        ok = responses["ok"]
        assert ok["status"] == 200
        assert [h["name"] for h in ok["headers"]] == ["X-Request-ID"]
        assert ok["body"]["ref"] == "Order"
        assert ok["body"]["array"] is False
        assert [f["name"] for f in ok["body"]["fields"]] == ["createdAt", "id", "items", "total", "discount"]
        assert responses["list"]["body"]["array"] is True


# ###############
# Serialization
# ###############


class TestSerialization:
    def test_output_is_byte_identical_across_runs(self) -> None:
        assert serialize(_graph({"test.spec": _SOURCE})) == serialize(_graph({"test.spec": _SOURCE}))

    def test_declaration_order_does_not_change_entity_order(self) -> None:
        first = serialize(_graph({"test.spec": "A { x string }\nB { y string }"}))
        second = serialize(_graph({"test.spec": "B { y string }\nA { x string }"}))
        assert first == second

    def test_serialized_text_is_valid_json(self) -> None:
        text = serialize(_graph({"test.spec": _SOURCE}))
        assert json.loads(text)["version"] == IR_FORMAT_VERSION
        assert text.endswith("\n")

    def test_write_and_read(self, tmp_path: Path) -> None:
        graph = _graph({"test.spec": _SOURCE})
        target = tmp_path / "out" / "ir.json"
        write_ir(graph, target)
        assert target.exists()
        assert read_ir(target) == emit(graph)

    def test_unknown_version_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unsupported IR format version"):
            deserialize('{"version": "99"}')

    def test_non_object_document_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            deserialize("[]")
