# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for spec files.

Converts raw source text into a sequence of tokens for subsequent parsing.
The sequence is lazy and restartable: tokens are scanned while iterating and
each new iteration rescans the source from the beginning.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass

from specml.errors import LexError

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """All token types produced by the SpecML scanner."""

    # Keywords
    IMPORT = "import"

    # Symbols and operators
    LBRACE = "{"
    RBRACE = "}"
    LANGLE = "<"
    RANGLE = ">"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    HASH = "#"
    QUESTION = "?"
    COLON = ":"
    PIPE = "|"
    COMMA = ","
    SEMICOLON = ";"

    # Literals
    STRING = "STRING"
    NUMBER = "NUMBER"
    PATH = "PATH"

    # Identifiers
    IDENTIFIER = "IDENTIFIER"

    # End of file
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source location.

    Attributes:
        type: The kind of token.
        value: The raw text of the token (or decoded string content for STRING tokens).
        line: 1-based line number where the token starts.
        column: 1-based column number where the token starts.
    """

    type: TokenType
    value: str
    line: int
    column: int


class TokenStream:
    """A lazy, finite, restartable sequence of tokens for one source text.

    Iterating yields tokens as they are scanned and always ends with exactly
    one EOF token. A :class:`~specml.errors.LexError` surfaces at the point
    of iteration where the offending character is reached.
    """

    def __init__(self, source: str, file: str | None = None) -> None:
        self._source = source
        self._file = file

    def __iter__(self) -> Iterator[Token]:
        return _Lexer(self._source, self._file).scan()


def tokenize(source: str, file: str | None = None) -> TokenStream:
    """Tokenize spec source text.

    Comments and whitespace are consumed and not included in the output.

    Args:
        source: The full text of a spec file.
        file: Optional root-relative file path used in error locations.

    Returns:
        A :class:`TokenStream`; ``list(tokenize(src))`` materializes it.

    Raises:
        LexError: While iterating, on unexpected characters, invalid escapes,
            unterminated string literals, or unterminated block comments.
    """
    return TokenStream(source, file)


# ################
# Implementation
# ################

_KEYWORDS: dict[str, TokenType] = {
    "import": TokenType.IMPORT,
}

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "<": TokenType.LANGLE,
    ">": TokenType.RANGLE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "#": TokenType.HASH,
    "?": TokenType.QUESTION,
    ":": TokenType.COLON,
    "|": TokenType.PIPE,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}

# Characters that may continue an identifier after its first letter. A '/'
# continues an identifier only when followed by a letter or digit, which
# keeps "application/json" whole while "name// comment" still ends at "name".
_IDENT_CONTINUE = frozenset("_-.+")

_PATH_CHARS = frozenset("/:-_.~%@+")


class _Lexer:
    """Internal scanner state machine."""

    def __init__(self, source: str, file: str | None) -> None:
        self._source = source
        self._file = file
        self._pos = 0
        self._line = 1
        self._column = 1

    def scan(self) -> Iterator[Token]:
        """Yield all tokens including the terminal EOF."""
        while self._pos < len(self._source):
            self._skip_whitespace_and_comments()
            if self._pos >= len(self._source):
                break
            yield self._scan_token()
        yield Token(TokenType.EOF, "", self._line, self._column)

    def _error(self, message: str, line: int, column: int) -> LexError:
        return LexError(message, file=self._file, line=line, column=column)

    # ------------------------------------------------------------------
    # Low-level character access helpers
    # ------------------------------------------------------------------

    def _current(self) -> str:
        """Return the character at the current position, or '' at end of input."""
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self) -> str:
        """Return the character one position ahead, or '' at end of input."""
        if self._pos + 1 < len(self._source):
            return self._source[self._pos + 1]
        return ""

    def _advance(self) -> str:
        """Consume the current character, update position tracking, and return it."""
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    # ------------------------------------------------------------------
    # Whitespace and comment skipping
    # ------------------------------------------------------------------

    def _skip_whitespace_and_comments(self) -> None:
        """Skip all whitespace and comment runs at the current position."""
        while self._pos < len(self._source):
            ch = self._current()
            if ch in " \t\r\n\ufeff":
                self._advance()
            elif ch == "/" and self._peek() == "/":
                self._skip_line_comment()
            elif ch == "/" and self._peek() == "*":
                self._skip_block_comment()
            else:
                break

    def _skip_line_comment(self) -> None:
        """Consume from '//' through end-of-line (exclusive of the newline itself)."""
        while self._pos < len(self._source) and self._current() != "\n":
            self._advance()

    def _skip_block_comment(self) -> None:
        """Consume from '/*' through the matching '*/'."""
        start_line = self._line
        start_col = self._column
        self._advance()  # /
        self._advance()  # *
        while self._pos < len(self._source):
            if self._current() == "*" and self._peek() == "/":
                self._advance()  # *
                self._advance()  # /
                return
            self._advance()
        raise self._error("unterminated block comment", start_line, start_col)

    # ------------------------------------------------------------------
    # Token scanning dispatcher
    # ------------------------------------------------------------------

    def _scan_token(self) -> Token:
        """Dispatch to the appropriate handler based on the current character."""
        ch = self._current()
        line = self._line
        col = self._column

        if ch in _SINGLE_CHAR_TOKENS:
            self._advance()
            return Token(_SINGLE_CHAR_TOKENS[ch], ch, line, col)
        if ch == '"':
            return self._scan_string(line, col)
        if ch.isdigit() or (ch == "-" and self._peek().isdigit()):
            return self._scan_number(line, col)
        if ch.isalpha() or ch == "_":
            return self._scan_identifier_or_keyword(line, col)
        if ch == "/" or (ch == "@" and self._peek() == "/") or (ch == "." and self._peek() in (".", "/")):
            return self._scan_path(line, col)
        raise self._error(f"unexpected character {ch!r}", line, col)

    # ------------------------------------------------------------------
    # Literal scanners
    # ------------------------------------------------------------------

    def _scan_string(self, line: int, col: int) -> Token:
        """Scan a double-quoted string literal with escape sequences."""
        self._advance()  # opening "
        chars: list[str] = []
        while self._pos < len(self._source):
            ch = self._current()
            if ch == '"':
                self._advance()  # closing "
                return Token(TokenType.STRING, "".join(chars), line, col)
            if ch == "\n":
                raise self._error("unterminated string literal", line, col)
            if ch == "\\":
                self._advance()
                if self._pos >= len(self._source):
                    raise self._error("unterminated string literal", line, col)
                esc = self._current()
                if esc == "n":
                    chars.append("\n")
                elif esc == "t":
                    chars.append("\t")
                elif esc == "\\":
                    chars.append("\\")
                elif esc == '"':
                    chars.append('"')
                else:
                    raise self._error(f"invalid escape sequence '\\{esc}'", self._line, self._column)
                self._advance()
            else:
                chars.append(ch)
                self._advance()
        raise self._error("unterminated string literal", line, col)

    def _scan_number(self, line: int, col: int) -> Token:
        """Scan an integer or decimal literal with an optional leading minus.

        A decimal requires at least one digit on both sides of the point.
        """
        start = self._pos
        if self._current() == "-":
            self._advance()
        while self._pos < len(self._source) and self._current().isdigit():
            self._advance()
        if self._current() == "." and self._peek().isdigit():
            self._advance()  # consume the '.'
            while self._pos < len(self._source) and self._current().isdigit():
                self._advance()
        return Token(TokenType.NUMBER, self._source[start : self._pos], line, col)

    def _scan_identifier_or_keyword(self, line: int, col: int) -> Token:
        """Scan an identifier and map it to a keyword token type if applicable."""
        start = self._pos
        while self._pos < len(self._source):
            ch = self._current()
            if ch.isalnum() or ch in _IDENT_CONTINUE:
                self._advance()
            elif ch == "/" and self._peek().isalnum():
                self._advance()
            else:
                break
        value = self._source[start : self._pos]
        return Token(_KEYWORDS.get(value, TokenType.IDENTIFIER), value, line, col)

    def _scan_path(self, line: int, col: int) -> Token:
        """Scan a URL path template or an import path such as '@/shared/base.spec' or './x.spec'."""
        start = self._pos
        self._advance()
        while self._pos < len(self._source):
            ch = self._current()
            if ch == "/" and self._peek() in ("/", "*"):
                break
            if ch.isalnum() or ch in _PATH_CHARS:
                self._advance()
            else:
                break
        return Token(TokenType.PATH, self._source[start : self._pos], line, col)
