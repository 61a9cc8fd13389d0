# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the SpecML lexical scanner."""

import pytest

from specml.compiler.scanner import Token, TokenType, tokenize
from specml.errors import LexError

# ###############
# Test Helpers
# ###############


def _tokens(source: str) -> list[Token]:
    """Return all tokens including the terminal EOF."""
    return list(tokenize(source))


def _tokens_no_eof(source: str) -> list[Token]:
    """Return all tokens except the terminal EOF token."""
    result = _tokens(source)
    assert result[-1].type == TokenType.EOF
    return result[:-1]


def _types(source: str) -> list[TokenType]:
    return [tok.type for tok in _tokens_no_eof(source)]


def _values(source: str) -> list[str]:
    return [tok.value for tok in _tokens_no_eof(source)]


# ###############
# EOF Handling
# ###############


class TestEof:
    def test_empty_string_produces_eof(self) -> None:
        tokens = _tokens("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF
        assert (tokens[0].line, tokens[0].column) == (1, 1)

    def test_whitespace_and_comments_only_produce_eof(self) -> None:
        tokens = _tokens("  \t\n// line comment\n/* block\ncomment */\n")
        assert [t.type for t in tokens] == [TokenType.EOF]

    def test_exactly_one_eof(self) -> None:
        tokens = _tokens("Money { amount number }")
        assert sum(1 for t in tokens if t.type == TokenType.EOF) == 1


# ###############
# Stream Semantics
# ###############


class TestStream:
    def test_stream_is_restartable(self) -> None:
        stream = tokenize("Order { id string<ulid> }")
        assert list(stream) == list(stream)

    def test_errors_surface_during_iteration(self) -> None:
        stream = tokenize("Order $")
        it = iter(stream)
        first = next(it)
        assert first.value == "Order"
        with pytest.raises(LexError):
            next(it)

    def test_creating_a_stream_does_not_scan(self) -> None:
        # No error until the stream is iterated.
        tokenize("$$$")


# ###############
# Keywords and Identifiers
# ###############


class TestIdentifiers:
    def test_import_is_a_keyword(self) -> None:
        assert _types("import") == [TokenType.IMPORT]

    def test_keyword_prefix_is_an_identifier(self) -> None:
        assert _types("imports") == [TokenType.IDENTIFIER]

    @pytest.mark.parametrize(
        "source",
        ["Order", "_private", "X-API-Key", "Content-Type", "application/json", "snake_case1"],
    )
    def test_single_identifier(self, source: str) -> None:
        tokens = _tokens_no_eof(source)
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == source

    def test_identifier_stops_before_line_comment(self) -> None:
        assert _values("name// trailing comment") == ["name"]

    def test_byte_order_mark_is_skipped(self) -> None:
        assert _values("\ufeffMoney {}") == ["Money", "{", "}"]


# ###############
# Symbols
# ###############


class TestSymbols:
    def test_all_single_character_symbols(self) -> None:
        assert _types("{ } < > ( ) [ ] # ? : | , ;") == [
            TokenType.LBRACE,
            TokenType.RBRACE,
            TokenType.LANGLE,
            TokenType.RANGLE,
            TokenType.LPAREN,
            TokenType.RPAREN,
            TokenType.LBRACKET,
            TokenType.RBRACKET,
            TokenType.HASH,
            TokenType.QUESTION,
            TokenType.COLON,
            TokenType.PIPE,
            TokenType.COMMA,
            TokenType.SEMICOLON,
        ]

    def test_constraint_list(self) -> None:
        assert _types("string<min:1|max:999>") == [
            TokenType.IDENTIFIER,
            TokenType.LANGLE,
            TokenType.IDENTIFIER,
            TokenType.COLON,
            TokenType.NUMBER,
            TokenType.PIPE,
            TokenType.IDENTIFIER,
            TokenType.COLON,
            TokenType.NUMBER,
            TokenType.RANGLE,
        ]

    def test_reference_operator(self) -> None:
        assert _values("body#Order[]") == ["body", "#", "Order", "[", "]"]


# ###############
# Literals
# ###############


class TestLiterals:
    @pytest.mark.parametrize("source", ["0", "42", "-5", "3.14", "-0.5"])
    def test_numbers(self, source: str) -> None:
        tokens = _tokens_no_eof(source)
        assert [t.type for t in tokens] == [TokenType.NUMBER]
        assert tokens[0].value == source

    def test_string_with_escapes(self) -> None:
        tokens = _tokens_no_eof(r'"a\nb\t\\\"c"')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == 'a\nb\t\\"c'

    @pytest.mark.parametrize(
        "source",
        [
            "/api/orders",
            "/api/orders/:orderId/cancel",
            "@/shared/data/base.data.spec",
            "./money.data.spec",
            "../shared/base.spec",
        ],
    )
    def test_paths(self, source: str) -> None:
        tokens = _tokens_no_eof(source)
        assert [t.type for t in tokens] == [TokenType.PATH]
        assert tokens[0].value == source

    def test_path_stops_before_comment(self) -> None:
        assert _values("/api/orders // list") == ["/api/orders"]


# ###############
# Locations
# ###############


class TestLocations:
    def test_line_and_column_tracking(self) -> None:
        tokens = _tokens_no_eof("Money {\n  amount number\n}")
        amount = tokens[2]
        assert amount.value == "amount"
        assert (amount.line, amount.column) == (2, 3)
        closing = tokens[4]
        assert (closing.line, closing.column) == (3, 1)

    def test_block_comment_advances_lines(self) -> None:
        tokens = _tokens_no_eof("/* one\ntwo */ Order")
        assert (tokens[0].line, tokens[0].column) == (2, 8)


# ###############
# Errors
# ###############


class TestErrors:
    def test_unexpected_character(self) -> None:
        with pytest.raises(LexError) as exc_info:
            _tokens("Order {\n  $x\n}")
        assert exc_info.value.line == 2
        assert exc_info.value.column == 3

    def test_unterminated_string(self) -> None:
        with pytest.raises(LexError, match="unterminated string"):
            _tokens('"abc')

    def test_newline_in_string(self) -> None:
        with pytest.raises(LexError, match="unterminated string"):
            _tokens('"abc\ndef"')

    def test_invalid_escape(self) -> None:
        with pytest.raises(LexError, match="invalid escape"):
            _tokens(r'"\q"')

    def test_unterminated_block_comment(self) -> None:
        with pytest.raises(LexError, match="unterminated block comment") as exc_info:
            _tokens("Order {}\n/* never closed")
        assert (exc_info.value.line, exc_info.value.column) == (2, 1)

    def test_error_carries_file(self) -> None:
        with pytest.raises(LexError) as exc_info:
            list(tokenize("$", file="shared/data/base.data.spec"))
        assert exc_info.value.file == "shared/data/base.data.spec"
        assert exc_info.value.format().startswith("shared/data/base.data.spec:1:1: error[LexError]")
