# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Diagnostic taxonomy shared by every compiler stage.

Every error carries a stable ``kind`` (the class name), the originating file
and a 1-based line/column so that editor tooling can parse the output. Errors
are exceptions so that per-file stages (scanning, parsing) can raise them,
while whole-graph stages (composition, validation) collect them in lists and
raise a single :class:`CompilationError` at the end of the run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# ###############
# Public Interface
# ###############


class SpecError(Exception):
    """Base class for all located compiler diagnostics.

    Attributes:
        message: Human-readable description without location prefix.
        file: Root-relative path of the originating file, if known.
        line: 1-based line number (0 when unknown).
        column: 1-based column number (0 when unknown).
    """

    def __init__(self, message: str, *, file: str | None = None, line: int = 0, column: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.file = file
        self.line = line
        self.column = column

    @property
    def kind(self) -> str:
        """Stable, machine-parseable error kind."""
        return type(self).__name__

    def attributes(self) -> dict[str, Any]:
        """Return the kind-specific attributes of this error."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation of the error."""
        d: dict[str, Any] = {
            "kind": self.kind,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "message": self.message,
        }
        d.update(self.attributes())
        return d

    def format(self) -> str:
        """Return the one-line ``file:line:column: error[Kind]: message`` form."""
        return f"{_location(self.file, self.line, self.column)}: error[{self.kind}]: {self.message}"

    def __str__(self) -> str:
        return self.format()


class LexError(SpecError):
    """Raised on unterminated literals, invalid escapes, or unknown characters."""


class ParseError(SpecError):
    """Raised when a token does not fit the grammar.

    Attributes:
        expected: Description of what the parser expected.
        found: The raw text of the offending token.
    """

    def __init__(
        self,
        expected: str,
        found: str,
        *,
        file: str | None = None,
        line: int = 0,
        column: int = 0,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message or f"expected {expected}, found {found!r}",
            file=file,
            line=line,
            column=column,
        )
        self.expected = expected
        self.found = found

    def attributes(self) -> dict[str, Any]:
        return {"expected": self.expected, "found": self.found}


class UnresolvedImportError(SpecError):
    """An import path that matches no known file."""

    def __init__(self, path: str, *, file: str | None = None, line: int = 0, column: int = 0) -> None:
        super().__init__(f"import '{path}' does not match any spec file", file=file, line=line, column=column)
        self.path = path

    def attributes(self) -> dict[str, Any]:
        return {"path": self.path}


class CyclicImportError(SpecError):
    """A cycle in the import graph.

    Attributes:
        cycle: The back-edge chain found, starting and ending with the same file.
    """

    def __init__(self, cycle: list[str], *, file: str | None = None, line: int = 0, column: int = 0) -> None:
        super().__init__(
            "import cycle: " + " -> ".join(cycle),
            file=file or (cycle[0] if cycle else None),
            line=line,
            column=column,
        )
        self.cycle = cycle

    def attributes(self) -> dict[str, Any]:
        return {"cycle": list(self.cycle)}


class UnknownCopySourceError(SpecError):
    """A ``>Name`` copy source that is not registered when it is used."""

    def __init__(
        self, declaration: str, name: str, *, file: str | None = None, line: int = 0, column: int = 0
    ) -> None:
        super().__init__(
            f"'{declaration}' copies unknown entity '{name}'",
            file=file,
            line=line,
            column=column,
        )
        self.declaration = declaration
        self.name = name

    def attributes(self) -> dict[str, Any]:
        return {"declaration": self.declaration, "name": self.name}


class UnknownReferenceError(SpecError):
    """A ``#Name`` reference that does not name a data declaration."""

    def __init__(
        self,
        field: str,
        name: str,
        *,
        reason: str = "is not defined",
        file: str | None = None,
        line: int = 0,
        column: int = 0,
    ) -> None:
        super().__init__(
            f"field '{field}' references '{name}', which {reason}",
            file=file,
            line=line,
            column=column,
        )
        self.field = field
        self.name = name

    def attributes(self) -> dict[str, Any]:
        return {"field": self.field, "name": self.name}


class DuplicateNameError(SpecError):
    """Two declarations registering the same name."""

    def __init__(
        self, name: str, first_file: str, second_file: str, *, line: int = 0, column: int = 0
    ) -> None:
        super().__init__(
            f"'{name}' is declared in both '{first_file}' and '{second_file}'",
            file=second_file,
            line=line,
            column=column,
        )
        self.name = name
        self.first_file = first_file
        self.second_file = second_file

    def attributes(self) -> dict[str, Any]:
        return {"name": self.name, "firstFile": self.first_file, "secondFile": self.second_file}


class IncompatibleConstraintError(SpecError):
    """A constraint applied to a base type it does not support."""

    def __init__(
        self, field: str, constraint: str, base_type: str, *, file: str | None = None, line: int = 0, column: int = 0
    ) -> None:
        super().__init__(
            f"constraint '{constraint}' cannot be applied to {base_type} field '{field}'",
            file=file,
            line=line,
            column=column,
        )
        self.field = field
        self.constraint = constraint
        self.base_type = base_type

    def attributes(self) -> dict[str, Any]:
        return {"field": self.field, "constraint": self.constraint, "baseType": self.base_type}


class EnumTypeMismatchError(SpecError):
    """An enum literal that the field's base type cannot represent."""

    def __init__(
        self,
        field: str,
        value: str | int | float | None,
        base_type: str,
        *,
        file: str | None = None,
        line: int = 0,
        column: int = 0,
    ) -> None:
        if value is None:
            message = f"{base_type} field '{field}' cannot declare allowed values"
        else:
            message = f"allowed value {value!r} is not a valid {base_type} for field '{field}'"
        super().__init__(message, file=file, line=line, column=column)
        self.field = field
        self.value = value
        self.base_type = base_type

    def attributes(self) -> dict[str, Any]:
        return {"field": self.field, "value": self.value, "baseType": self.base_type}


class UnknownConstraintError(SpecError):
    """A constraint name missing from the compatibility table."""

    def __init__(
        self, field: str, constraint: str, *, file: str | None = None, line: int = 0, column: int = 0
    ) -> None:
        super().__init__(
            f"unknown constraint '{constraint}' on field '{field}'",
            file=file,
            line=line,
            column=column,
        )
        self.field = field
        self.constraint = constraint

    def attributes(self) -> dict[str, Any]:
        return {"field": self.field, "constraint": self.constraint}


class InvalidConstraintArgumentError(SpecError):
    """A constraint argument that is missing, unexpected, or out of range."""

    def __init__(
        self,
        field: str,
        constraint: str,
        argument: str | int | float | None,
        reason: str,
        *,
        file: str | None = None,
        line: int = 0,
        column: int = 0,
    ) -> None:
        super().__init__(
            f"constraint '{constraint}' on field '{field}' {reason}",
            file=file,
            line=line,
            column=column,
        )
        self.field = field
        self.constraint = constraint
        self.argument = argument

    def attributes(self) -> dict[str, Any]:
        return {"field": self.field, "constraint": self.constraint, "argument": self.argument}


class PathParameterError(SpecError):
    """A path placeholder and the ``params`` section disagree."""

    def __init__(
        self, endpoint: str, parameter: str, reason: str, *, file: str | None = None, line: int = 0, column: int = 0
    ) -> None:
        super().__init__(
            f"endpoint '{endpoint}': path parameter '{parameter}' {reason}",
            file=file,
            line=line,
            column=column,
        )
        self.endpoint = endpoint
        self.parameter = parameter

    def attributes(self) -> dict[str, Any]:
        return {"endpoint": self.endpoint, "parameter": self.parameter}


@dataclass(frozen=True)
class CompilerWarning:
    """A non-fatal finding; the schema still compiles.

    Attributes:
        kind: Stable warning kind, e.g. ``"TypeChangingOverride"``.
        message: Human-readable description.
        file: Root-relative path of the originating file.
        line: 1-based line number.
        column: 1-based column number.
    """

    kind: str
    message: str
    file: str | None = None
    line: int = 0
    column: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "message": self.message,
        }

    def format(self) -> str:
        return f"{_location(self.file, self.line, self.column)}: warning[{self.kind}]: {self.message}"


class CompilationError(Exception):
    """Raised when a compilation run fails; aggregates every diagnostic found.

    Attributes:
        errors: All errors of the failing stage(s), in report order.
        warnings: Warnings gathered before the run failed.
    """

    def __init__(self, errors: list[SpecError], warnings: list[CompilerWarning] | None = None) -> None:
        super().__init__("\n".join(e.format() for e in errors))
        self.errors = errors
        self.warnings = warnings or []


# ################
# Implementation
# ################


def _location(file: str | None, line: int, column: int) -> str:
    return f"{file or '<input>'}:{line}:{column}"
