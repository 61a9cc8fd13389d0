# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler pipeline for spec files: scanning, parsing, import resolution, composition, and IR emission."""

from specml.compiler.build import CompileResult, compile_directory, compile_sources, discover_files
from specml.compiler.composer import ComposeResult, Composer, compose
from specml.compiler.imports import ImportEdge, ImportGraph, resolve_import_path, resolve_imports
from specml.compiler.ir import IR_FORMAT_VERSION, deserialize, emit, read_ir, serialize, write_ir
from specml.compiler.parser import parse
from specml.compiler.scanner import Token, TokenStream, TokenType, tokenize

__all__ = [
    "tokenize",
    "Token",
    "TokenStream",
    "TokenType",
    "parse",
    "resolve_imports",
    "resolve_import_path",
    "ImportEdge",
    "ImportGraph",
    "compose",
    "Composer",
    "ComposeResult",
    "emit",
    "serialize",
    "deserialize",
    "write_ir",
    "read_ir",
    "IR_FORMAT_VERSION",
    "compile_sources",
    "compile_directory",
    "discover_files",
    "CompileResult",
]
