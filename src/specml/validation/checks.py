# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Constraint and enumeration checks for composed SpecML schemas.

These checks operate on the fully composed graph (after copy expansion and
reference resolution) and enforce the rules that the grammar alone cannot:
constraint/type compatibility, constraint arguments, enumeration closure, and
agreement between endpoint path templates and their ``params`` sections.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from specml.errors import (
    CompilerWarning,
    EnumTypeMismatchError,
    IncompatibleConstraintError,
    InvalidConstraintArgumentError,
    PathParameterError,
    SpecError,
    UnknownConstraintError,
)
from specml.model.entities import ResolvedEndpoint, ResolvedEntity, ResolvedGraph, ResolvedSection
from specml.model.types import Field, LiteralValue, ObjectTypeRef, base_type_name

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ConstraintRule:
    """One row of the constraint compatibility table.

    Attributes:
        name: The constraint name as written in ``<...>``.
        base_types: Base types the constraint applies to. Empty for
            constraints on the field's multiplicity (``minItems``).
        argument: ``"none"``, ``"number"``, ``"count"`` (non-negative
            integer), or ``"string"``.
    """

    name: str
    base_types: frozenset[str]
    argument: str

    @property
    def applies_to_arrays(self) -> bool:
        return not self.base_types


_STRING = frozenset({"string"})
_NUMBER = frozenset({"number"})

CONSTRAINT_RULES: dict[str, ConstraintRule] = {
    rule.name: rule
    for rule in [
        ConstraintRule("min", _NUMBER, "number"),
        ConstraintRule("max", _NUMBER, "number"),
        ConstraintRule("integer", _NUMBER, "none"),
        ConstraintRule("positive", _NUMBER, "none"),
        ConstraintRule("minLength", _STRING, "count"),
        ConstraintRule("maxLength", _STRING, "count"),
        ConstraintRule("length", _STRING, "count"),
        ConstraintRule("trim", _STRING, "none"),
        ConstraintRule("uppercase", _STRING, "none"),
        ConstraintRule("lowercase", _STRING, "none"),
        ConstraintRule("isEmail", _STRING, "none"),
        ConstraintRule("isISO", _STRING, "none"),
        ConstraintRule("isUrl", _STRING, "none"),
        ConstraintRule("isUUID", _STRING, "none"),
        ConstraintRule("ulid", _STRING, "none"),
        ConstraintRule("pattern", _STRING, "string"),
        ConstraintRule("unique", frozenset({"string", "number"}), "none"),
        ConstraintRule("minItems", frozenset(), "count"),
        ConstraintRule("maxItems", frozenset(), "count"),
    ]
}

# Lower/upper bound pairs checked for consistency on a single field.
_BOUND_PAIRS = [("min", "max"), ("minLength", "maxLength"), ("minItems", "maxItems")]


@dataclass
class ValidationResult:
    """Result of running the constraint checks.

    Attributes:
        errors: Every violation, ordered by file, declaration, and field path.
        warnings: Non-fatal findings in the same order.
    """

    errors: list[SpecError] = field(default_factory=list)
    warnings: list[CompilerWarning] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Return True if any violations were found."""
        return len(self.errors) > 0


def validate(
    graph: ResolvedGraph,
    rejected: Iterable[ResolvedEntity | ResolvedEndpoint] = (),
) -> ValidationResult:
    """Run all constraint checks on a composed graph.

    Checks performed:

    1. **Compatibility**: every constraint is known and applies to the
       field's base type (``minItems``/``maxItems`` only to array fields).
    2. **Arguments**: required arguments are present and well-typed,
       argument-less constraints carry none, and lower bounds do not exceed
       upper bounds.
    3. **Enumerations**: ``number`` fields allow only numeric literals,
       ``boolean`` fields only ``true``/``false``, and objects or references
       none at all. Repeated values are reported as warnings.
    4. **Path parameters**: every ``:name`` placeholder of an endpoint path
       has a matching ``params`` field and vice versa.

    Copied fields are checked only in the entity that declares them, so each
    violation is reported exactly once. Collection is exhaustive.

    Args:
        graph: The composed graph.
        rejected: Declarations composed but left out of *graph* as duplicates;
            their violations are reported too.

    Returns:
        A :class:`ValidationResult`; an empty result means the schema is valid.
    """
    checker = _Checker()
    for entity in graph.entities.values():
        checker.check_fields(entity.file, entity.name, entity.fields, prefix="")
    for endpoint in graph.endpoints.values():
        checker.check_endpoint(endpoint)
    for declaration in rejected:
        if isinstance(declaration, ResolvedEndpoint):
            checker.check_endpoint(declaration)
        else:
            checker.check_fields(declaration.file, declaration.name, declaration.fields, prefix="")
    return checker.result()


# ################
# Implementation
# ################

_SortKey = tuple[str, str, str]


class _Checker:
    """Collects violations together with their sort keys."""

    def __init__(self) -> None:
        self._errors: list[tuple[_SortKey, SpecError]] = []
        self._warnings: list[tuple[_SortKey, CompilerWarning]] = []

    def result(self) -> ValidationResult:
        # sorted() is stable, so several violations on one field keep their order.
        return ValidationResult(
            errors=[e for _, e in sorted(self._errors, key=lambda item: item[0])],
            warnings=[w for _, w in sorted(self._warnings, key=lambda item: item[0])],
        )

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def check_fields(self, file: str, declaration: str, fields: list[Field], prefix: str) -> None:
        for f in fields:
            if f.inherited_from is not None:
                continue
            path = prefix + f.name
            key = (file, declaration, path)
            self._check_constraints(key, f, path)
            self._check_enum(key, f, path)
            if isinstance(f.type, ObjectTypeRef):
                self.check_fields(file, declaration, f.type.fields, prefix=path + ".")

    def check_endpoint(self, endpoint: ResolvedEndpoint) -> None:
        labelled: list[tuple[str, ResolvedSection | None]] = [
            ("headers", endpoint.headers),
            ("params", endpoint.params),
            ("query", endpoint.query),
            ("body", endpoint.body),
        ]
        for response in endpoint.responses:
            labelled.append((f"response.{response.name}.headers", response.headers))
            labelled.append((f"response.{response.name}.body", response.body))
        for label, section in labelled:
            # Referenced sections are checked in the entity they reference.
            if section is not None and section.reference is None:
                self.check_fields(endpoint.file, endpoint.name, section.fields, prefix=label + ".")
        self._check_path_params(endpoint)

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def _check_constraints(self, key: _SortKey, f: Field, path: str) -> None:
        base_type = base_type_name(f.type)
        values: dict[str, LiteralValue | None] = {}
        for constraint in f.constraints:
            rule = CONSTRAINT_RULES.get(constraint.name)
            if rule is None:
                self._error(key, UnknownConstraintError(path, constraint.name, **_loc(key, f)))
                continue
            if rule.applies_to_arrays:
                if not f.is_array:
                    self._error(
                        key, IncompatibleConstraintError(path, constraint.name, f"non-array {base_type}", **_loc(key, f))
                    )
                    continue
            elif base_type not in rule.base_types:
                self._error(key, IncompatibleConstraintError(path, constraint.name, base_type, **_loc(key, f)))
                continue
            reason = _argument_problem(rule, constraint.value)
            if reason is not None:
                self._error(
                    key,
                    InvalidConstraintArgumentError(path, constraint.name, constraint.value, reason, **_loc(key, f)),
                )
                continue
            values[constraint.name] = constraint.value

        for lower, upper in _BOUND_PAIRS:
            low = values.get(lower)
            high = values.get(upper)
            if isinstance(low, int | float) and isinstance(high, int | float) and low > high:
                self._error(
                    key,
                    InvalidConstraintArgumentError(
                        path, lower, low, f"is greater than '{upper}' ({high})", **_loc(key, f)
                    ),
                )

    # ------------------------------------------------------------------
    # Enumerations
    # ------------------------------------------------------------------

    def _check_enum(self, key: _SortKey, f: Field, path: str) -> None:
        if f.enum_values is None:
            return
        base_type = base_type_name(f.type)
        if base_type in ("object", "reference"):
            self._error(key, EnumTypeMismatchError(path, None, base_type, **_loc(key, f)))
            return
        seen: list[LiteralValue] = []
        for value in f.enum_values:
            if not _enum_value_fits(value, base_type):
                self._error(key, EnumTypeMismatchError(path, value, base_type, **_loc(key, f)))
            if value in seen:
                self._warning(
                    key,
                    CompilerWarning(
                        kind="DuplicateEnumValue",
                        message=f"allowed value {value!r} is listed more than once for field '{path}'",
                        file=key[0],
                        line=f.line,
                        column=f.column,
                    ),
                )
            else:
                seen.append(value)

    # ------------------------------------------------------------------
    # Endpoint paths
    # ------------------------------------------------------------------

    def _check_path_params(self, endpoint: ResolvedEndpoint) -> None:
        params = endpoint.params.fields if endpoint.params is not None else []
        param_names = [f.name for f in params]
        location = {"file": endpoint.file, "line": endpoint.line, "column": endpoint.column}
        for placeholder in endpoint.path_params:
            if placeholder not in param_names:
                self._error(
                    (endpoint.file, endpoint.name, "params." + placeholder),
                    PathParameterError(endpoint.name, placeholder, "has no matching 'params' field", **location),
                )
        for f in params:
            if f.name not in endpoint.path_params:
                self._error(
                    (endpoint.file, endpoint.name, "params." + f.name),
                    PathParameterError(
                        endpoint.name,
                        f.name,
                        f"is declared in 'params' but missing from path '{endpoint.path}'",
                        file=endpoint.file,
                        line=f.line or endpoint.line,
                        column=f.column or endpoint.column,
                    ),
                )

    def _error(self, key: _SortKey, error: SpecError) -> None:
        self._errors.append((key, error))

    def _warning(self, key: _SortKey, warning: CompilerWarning) -> None:
        self._warnings.append((key, warning))


def _loc(key: _SortKey, f: Field) -> dict[str, str | int]:
    return {"file": key[0], "line": f.line, "column": f.column}


def _is_number(value: LiteralValue | None) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _argument_problem(rule: ConstraintRule, value: LiteralValue | None) -> str | None:
    """Return why *value* is not a valid argument for *rule*, or None if it is."""
    if rule.argument == "none":
        return None if value is None else "does not take an argument"
    if value is None:
        return "requires an argument"
    if rule.argument == "number" and not _is_number(value):
        return f"requires a numeric argument, got {value!r}"
    if rule.argument == "count" and not (isinstance(value, int) and _is_number(value) and value >= 0):
        return f"requires a non-negative integer argument, got {value!r}"
    if rule.argument == "string" and not isinstance(value, str):
        return f"requires a string argument, got {value!r}"
    return None


def _enum_value_fits(value: LiteralValue, base_type: str) -> bool:
    if base_type == "number":
        return _is_number(value)
    if base_type == "boolean":
        return value in ("true", "false")
    return True
