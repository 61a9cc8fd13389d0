# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Recursive-descent parser for spec files.

Converts a token stream produced by the scanner into a SpecFile model. Copy
sources (``>Name``) and references (``#Name``) are recorded by name only;
expanding them is the composer's job because the names may live in files
that have not been parsed yet.
"""

from __future__ import annotations

from specml.compiler.scanner import Token, TokenType, tokenize
from specml.errors import ParseError
from specml.model.entities import (
    HTTP_METHODS,
    Declaration,
    DeclarationKind,
    ImportDeclaration,
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
)

# ###############
# Public Interface
# ###############


def parse(source: str, file: str | None = None) -> SpecFile:
    """Parse spec source text into a SpecFile model.

    Parsing is atomic: the first error aborts the file and no partial model
    is returned.

    Args:
        source: The full text of a spec file.
        file: Root-relative path of the file; stored on the model and used
            in error locations.

    Returns:
        A SpecFile instance with imports and declarations in source order.

    Raises:
        LexError: If the source contains invalid characters or unterminated literals.
        ParseError: If the source is syntactically invalid.
    """
    tokens = list(tokenize(source, file))
    return _Parser(tokens, file).parse()


# ################
# Implementation
# ################

_PRIMITIVE_TYPES: dict[str, PrimitiveType] = {
    "string": PrimitiveType.STRING,
    "number": PrimitiveType.NUMBER,
    "boolean": PrimitiveType.BOOLEAN,
}

_SECTION_ROLES: dict[str, SectionRole] = {
    "headers": SectionRole.HEADERS,
    "params": SectionRole.PARAMS,
    "query": SectionRole.QUERY,
    "body": SectionRole.BODY,
}

_NAME_TYPES: frozenset[TokenType] = frozenset({TokenType.IDENTIFIER, TokenType.IMPORT})

_SEPARATORS: frozenset[TokenType] = frozenset({TokenType.SEMICOLON, TokenType.COMMA})


def _describe(token_type: TokenType) -> str:
    if token_type == TokenType.EOF:
        return "end of file"
    if token_type in (TokenType.IDENTIFIER, TokenType.STRING, TokenType.NUMBER, TokenType.PATH):
        return token_type.name.lower()
    return repr(token_type.value)


def _literal(tok: Token) -> LiteralValue:
    """Convert a literal token to its Python value."""
    if tok.type == TokenType.NUMBER:
        return float(tok.value) if "." in tok.value else int(tok.value)
    return tok.value


class _Parser:
    """Recursive-descent parser for SpecML token streams."""

    def __init__(self, tokens: list[Token], file: str | None) -> None:
        self._tokens = tokens
        self._file = file
        self._pos = 0

    def parse(self) -> SpecFile:
        """Parse the full token stream and return a SpecFile."""
        result = SpecFile(path=self._file or "")
        while not self._at_end():
            tok = self._current()
            if tok.type == TokenType.IMPORT:
                result.imports.append(self._parse_import())
            elif tok.type == TokenType.IDENTIFIER:
                result.declarations.append(self._parse_declaration())
            elif tok.type in _SEPARATORS:
                self._advance()
            else:
                raise self._error("'import' or a declaration name", tok)
        return result

    # ------------------------------------------------------------------
    # Token access helpers
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        """Return the current (un-consumed) token."""
        return self._tokens[self._pos]

    def _peek_type(self) -> TokenType:
        """Return the token type of the current token."""
        return self._tokens[self._pos].type

    def _at_end(self) -> bool:
        """Return True if the current token is the EOF token."""
        return self._peek_type() == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return the current token, stopping at EOF."""
        tok = self._tokens[self._pos]
        if self._pos < len(self._tokens) - 1:
            self._pos += 1
        return tok

    def _check(self, *types: TokenType) -> bool:
        """Return True if the current token matches any of the given types (without
        consuming).
        """
        return self._peek_type() in types

    def _match(self, token_type: TokenType) -> bool:
        """Consume the current token if it has the given type; report whether it did."""
        if self._check(token_type):
            self._advance()
            return True
        return False

    def _expect(self, *types: TokenType) -> Token:
        """Consume the current token if it matches any of the given types.

        Raises ParseError if the current token does not match.
        """
        tok = self._current()
        if tok.type not in types:
            raise self._error(" or ".join(_describe(t) for t in types), tok)
        return self._advance()

    def _expect_name_token(self) -> Token:
        """Consume the current token as a field or section name.

        Accepts identifiers and the 'import' keyword used in name position.
        """
        tok = self._current()
        if tok.type not in _NAME_TYPES:
            raise self._error("field name", tok)
        return self._advance()

    def _error(self, expected: str, tok: Token, message: str | None = None) -> ParseError:
        found = tok.value if tok.type != TokenType.EOF else "end of file"
        return ParseError(expected, found, file=self._file, line=tok.line, column=tok.column, message=message)

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _parse_import(self) -> ImportDeclaration:
        """Parse: import <path>"""
        keyword = self._expect(TokenType.IMPORT)
        path_tok = self._expect(TokenType.PATH, TokenType.IDENTIFIER, TokenType.STRING)
        return ImportDeclaration(path=path_tok.value, line=keyword.line, column=keyword.column)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _parse_declaration(self) -> Declaration:
        """Parse: <Name> { members }"""
        name_tok = self._expect(TokenType.IDENTIFIER)
        self._expect(TokenType.LBRACE)
        if self._is_endpoint_block():
            decl = self._parse_endpoint_body(name_tok)
        else:
            copy_sources, fields = self._parse_members()
            decl = Declaration(
                name=name_tok.value,
                kind=DeclarationKind.DATA,
                copy_sources=copy_sources,
                fields=fields,
                line=name_tok.line,
                column=name_tok.column,
            )
        self._expect(TokenType.RBRACE)
        return decl

    def _is_endpoint_block(self) -> bool:
        """Look ahead through the current block for an endpoint directive.

        A block is an endpoint when one of its direct members is
        ``method <HTTP-VERB>`` or ``path </url/path>``.
        """
        depth = 1
        i = self._pos
        while i < len(self._tokens) - 1:
            tok = self._tokens[i]
            if tok.type == TokenType.LBRACE:
                depth += 1
            elif tok.type == TokenType.RBRACE:
                depth -= 1
                if depth == 0:
                    return False
            elif depth == 1 and tok.type == TokenType.IDENTIFIER:
                nxt = self._tokens[i + 1]
                if tok.value == "path" and nxt.type == TokenType.PATH:
                    return True
                if tok.value == "method" and nxt.type == TokenType.IDENTIFIER and nxt.value in HTTP_METHODS:
                    return True
            i += 1
        return False

    # ------------------------------------------------------------------
    # Data members: copy sources and fields
    # ------------------------------------------------------------------

    def _parse_members(self) -> tuple[list[CopySource], list[Field]]:
        """Parse block members up to (not including) the closing brace."""
        copy_sources: list[CopySource] = []
        fields: list[Field] = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._check(*_SEPARATORS):
                self._advance()
            elif self._check(TokenType.RANGLE):
                copy_sources.append(self._parse_copy_source())
            else:
                fields.append(self._parse_field())
        return copy_sources, fields

    def _parse_copy_source(self) -> CopySource:
        """Parse: > <Name>"""
        marker = self._expect(TokenType.RANGLE)
        name_tok = self._expect(TokenType.IDENTIFIER)
        return CopySource(name=name_tok.value, line=marker.line, column=marker.column)

    def _parse_field(self) -> Field:
        """Parse: <name>[[]][?] (#Ref | { members } | type [<constraints>] [(values)])"""
        name_tok = self._current()
        if name_tok.type not in _NAME_TYPES:
            raise self._error("field name or '>' copy source", name_tok)
        self._advance()
        is_array = self._match_array()
        optional = self._match(TokenType.QUESTION)

        field_type: TypeRef
        constraints: list[Constraint] = []
        enum_values: list[LiteralValue] | None = None

        if self._match(TokenType.HASH):
            target = self._expect(TokenType.IDENTIFIER)
            field_type = ReferenceTypeRef(target=target.value)
            is_array = self._match_array() or is_array
            optional = self._match(TokenType.QUESTION) or optional
        elif self._match(TokenType.LBRACE):
            copy_sources, fields = self._parse_members()
            self._expect(TokenType.RBRACE)
            field_type = ObjectTypeRef(copy_sources=copy_sources, fields=fields)
        elif self._check(TokenType.IDENTIFIER):
            field_type = self._parse_type_name()
            is_array = self._match_array() or is_array
            optional = self._match(TokenType.QUESTION) or optional
            if self._check(TokenType.LANGLE):
                constraints = self._parse_constraints()
            if self._check(TokenType.LPAREN):
                enum_values = self._parse_enum_values()
            optional = self._match(TokenType.QUESTION) or optional
        else:
            raise self._error("a type, '#' reference, or '{'", self._current())

        return Field(
            name=name_tok.value,
            type=field_type,
            optional=optional,
            is_array=is_array,
            constraints=constraints,
            enum_values=enum_values,
            line=name_tok.line,
            column=name_tok.column,
        )

    def _match_array(self) -> bool:
        """Consume an '[]' multiplicity marker if present."""
        if self._check(TokenType.LBRACKET):
            self._advance()
            self._expect(TokenType.RBRACKET)
            return True
        return False

    # ------------------------------------------------------------------
    # Types, constraints, allowed values
    # ------------------------------------------------------------------

    def _parse_type_name(self) -> TypeRef:
        """Parse a primitive type name; any other name is a reference."""
        tok = self._expect(TokenType.IDENTIFIER)
        if tok.value in _PRIMITIVE_TYPES:
            return PrimitiveTypeRef(primitive=_PRIMITIVE_TYPES[tok.value])
        return ReferenceTypeRef(target=tok.value)

    def _parse_constraints(self) -> list[Constraint]:
        """Parse: < name[:value] ( | name[:value] )* >"""
        self._expect(TokenType.LANGLE)
        constraints = [self._parse_constraint()]
        while self._match(TokenType.PIPE):
            constraints.append(self._parse_constraint())
        self._expect(TokenType.RANGLE)
        return constraints

    def _parse_constraint(self) -> Constraint:
        name_tok = self._expect(TokenType.IDENTIFIER)
        value: LiteralValue | None = None
        if self._match(TokenType.COLON):
            value = _literal(self._expect(TokenType.NUMBER, TokenType.IDENTIFIER, TokenType.STRING))
        return Constraint(name=name_tok.value, value=value)

    def _parse_enum_values(self) -> list[LiteralValue]:
        """Parse: ( literal ( | literal )* )"""
        self._expect(TokenType.LPAREN)
        values = [_literal(self._expect(TokenType.IDENTIFIER, TokenType.NUMBER, TokenType.STRING))]
        while self._check(TokenType.PIPE, TokenType.COMMA):
            self._advance()
            values.append(_literal(self._expect(TokenType.IDENTIFIER, TokenType.NUMBER, TokenType.STRING)))
        self._expect(TokenType.RPAREN)
        return values

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def _parse_endpoint_body(self, name_tok: Token) -> Declaration:
        """Parse the members of an endpoint block up to its closing brace."""
        decl = Declaration(
            name=name_tok.value,
            kind=DeclarationKind.ENDPOINT,
            line=name_tok.line,
            column=name_tok.column,
        )
        seen: set[str] = set()
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._check(*_SEPARATORS):
                self._advance()
                continue
            tok = self._expect_name_token()
            if tok.value in seen:
                raise self._error(
                    "a new endpoint member",
                    tok,
                    message=f"endpoint '{decl.name}' declares '{tok.value}' more than once",
                )
            seen.add(tok.value)
            if tok.value == "method":
                verb = self._expect(TokenType.IDENTIFIER)
                if verb.value.upper() not in HTTP_METHODS:
                    raise self._error("an HTTP method (" + ", ".join(sorted(HTTP_METHODS)) + ")", verb)
                decl.method = verb.value.upper()
            elif tok.value == "path":
                decl.path = self._expect(TokenType.PATH).value
            elif tok.value in _SECTION_ROLES:
                decl.sections.append(self._parse_section(_SECTION_ROLES[tok.value], tok))
            elif tok.value == "response":
                decl.responses = self._parse_responses()
            else:
                raise self._error("method, path, headers, params, query, body, or response", tok)

        closing = self._current()
        for required in ("method", "path"):
            if required not in seen:
                raise self._error(
                    f"'{required}'",
                    closing,
                    message=f"endpoint '{decl.name}' is missing '{required}'",
                )
        return decl

    def _parse_section(self, role: SectionRole, name_tok: Token) -> Section:
        """Parse: #Ref[[]] | { members }"""
        if self._match(TokenType.HASH):
            target = self._expect(TokenType.IDENTIFIER)
            is_array = self._match_array()
            return Section(
                role=role,
                reference=target.value,
                is_array=is_array,
                line=name_tok.line,
                column=name_tok.column,
            )
        self._expect(TokenType.LBRACE)
        copy_sources, fields = self._parse_members()
        self._expect(TokenType.RBRACE)
        return Section(
            role=role,
            copy_sources=copy_sources,
            fields=fields,
            line=name_tok.line,
            column=name_tok.column,
        )

    def _parse_responses(self) -> list[ResponseScenario]:
        """Parse: { <scenario> { status N [headers ...] [body ...] }* }"""
        self._expect(TokenType.LBRACE)
        scenarios: list[ResponseScenario] = []
        names: set[str] = set()
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._check(*_SEPARATORS):
                self._advance()
                continue
            name_tok = self._expect(TokenType.IDENTIFIER)
            if name_tok.value in names:
                raise self._error(
                    "a new response name",
                    name_tok,
                    message=f"response '{name_tok.value}' is declared more than once",
                )
            names.add(name_tok.value)
            scenarios.append(self._parse_scenario(name_tok))
        self._expect(TokenType.RBRACE)
        return scenarios

    def _parse_scenario(self, name_tok: Token) -> ResponseScenario:
        self._expect(TokenType.LBRACE)
        status: int | None = None
        headers: Section | None = None
        body: Section | None = None
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._check(*_SEPARATORS):
                self._advance()
                continue
            tok = self._expect_name_token()
            if tok.value == "status" and status is None:
                status = self._parse_status()
            elif tok.value == "headers" and headers is None:
                headers = self._parse_section(SectionRole.HEADERS, tok)
            elif tok.value == "body" and body is None:
                body = self._parse_section(SectionRole.BODY, tok)
            else:
                raise self._error("status, headers, or body (each at most once)", tok)
        if status is None:
            raise self._error(
                "'status'",
                self._current(),
                message=f"response '{name_tok.value}' is missing 'status'",
            )
        self._expect(TokenType.RBRACE)
        return ResponseScenario(
            name=name_tok.value,
            status=status,
            headers=headers,
            body=body,
            line=name_tok.line,
            column=name_tok.column,
        )

    def _parse_status(self) -> int:
        tok = self._expect(TokenType.NUMBER)
        if not tok.value.isdigit() or not 100 <= int(tok.value) <= 599:
            raise self._error("an HTTP status code between 100 and 599", tok)
        return int(tok.value)
