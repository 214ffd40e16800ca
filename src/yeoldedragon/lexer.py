"""Lexer for the Ye Olde Dragon language.

Produces a flat token stream from source text. Whitespace and ``//``
comments are skipped. Strings containing ``${...}`` interpolations are
emitted as STRING_START, text chunks, INTERP_START/INTERP_END-delimited
expression tokens and STRING_END; plain strings are a single STRING_LIT.
"""

from __future__ import annotations

from yeoldedragon.errors import DragonSyntaxError
from yeoldedragon.source import Span
from yeoldedragon.tokens import KEYWORDS, OPERATORS, Token, TokenKind

_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"', "$": "$", "0": "\0"}


class Lexer:
    """Tokenizes Dragon source code."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: list[Token] = []
        # One entry per open interpolation: brace depth inside it.
        self._interp_depths: list[int] = []

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in " \t\r\n":
                self._advance()
            elif ch == "/" and self._peek(1) == "/":
                self._skip_line_comment()
            elif ch == '"':
                self._lex_string()
            elif ch == "}" and self._interp_depths and self._interp_depths[-1] == 0:
                self._close_interpolation()
            elif ch.isdigit():
                self._lex_number()
            elif ch.isalpha() or ch == "_":
                self._lex_identifier()
            else:
                self._lex_operator_or_punct()

        if self._interp_depths:
            self._error("unterminated string interpolation", self.line, self.col)
        self._emit(TokenKind.EOF, "", self.line, self.col)
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _emit(self, kind: TokenKind, value: str, start_line: int, start_col: int) -> Token:
        end_col = self.col - 1 if self.col > 1 else 1
        span = Span(self.filename, start_line, start_col, self.line, end_col)
        tok = Token(kind, value, span)
        self.tokens.append(tok)
        return tok

    def _error(self, message: str, line: int, col: int) -> None:
        span = Span(self.filename, line, col, line, col)
        raise DragonSyntaxError(message, span, code="E100")

    def _skip_line_comment(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] != "\n":
            self._advance()

    # ── Literals ──────────────────────────────────────────────────

    def _lex_number(self) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        kind = TokenKind.INTEGER_LIT
        self._consume_digits()
        if self._peek() == "." and self._peek(1).isdigit():
            kind = TokenKind.FLOAT_LIT
            self._advance()
            self._consume_digits()
        if self._peek() in ("e", "E"):
            sign = 1 if self._peek(1) in ("+", "-") else 0
            if self._peek(1 + sign).isdigit():
                kind = TokenKind.FLOAT_LIT
                for _ in range(1 + sign):
                    self._advance()
                self._consume_digits()
        text = self.source[start:self.pos]
        if text.endswith("_"):
            self._error(f"malformed number {text!r}", start_line, start_col)
        self._emit(kind, text.replace("_", ""), start_line, start_col)

    def _consume_digits(self) -> None:
        while self.pos < len(self.source) and (
            self.source[self.pos].isdigit() or self.source[self.pos] == "_"
        ):
            self._advance()

    def _lex_identifier(self) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        while self.pos < len(self.source) and (
            self.source[self.pos].isalnum() or self.source[self.pos] == "_"
        ):
            self._advance()
        word = self.source[start:self.pos]
        self._emit(KEYWORDS.get(word, TokenKind.IDENTIFIER), word, start_line, start_col)

    def _lex_string(self) -> None:
        start_line, start_col = self.line, self.col
        self._advance()  # opening quote
        self._lex_string_body(start_line, start_col, interpolated=False)

    def _lex_string_body(self, start_line: int, start_col: int, *, interpolated: bool) -> None:
        """Scan string text up to the closing quote or the next ``${``."""
        buf: list[str] = []
        chunk_line, chunk_col = self.line, self.col
        while True:
            if self.pos >= len(self.source) or self._peek() == "\n":
                self._error("unterminated string literal", start_line, start_col)
            ch = self._peek()
            if ch == '"':
                if not interpolated:
                    self._advance()
                    self._emit(TokenKind.STRING_LIT, "".join(buf), start_line, start_col)
                    return
                if buf:
                    self._emit(TokenKind.STRING_LIT, "".join(buf), chunk_line, chunk_col)
                end_line, end_col = self.line, self.col
                self._advance()
                self._emit(TokenKind.STRING_END, '"', end_line, end_col)
                return
            if ch == "$" and self._peek(1) == "{":
                if not interpolated:
                    self._emit(TokenKind.STRING_START, '"', start_line, start_col)
                if buf:
                    self._emit(TokenKind.STRING_LIT, "".join(buf), chunk_line, chunk_col)
                interp_line, interp_col = self.line, self.col
                self._advance()
                self._advance()
                self._emit(TokenKind.INTERP_START, "${", interp_line, interp_col)
                self._interp_depths.append(0)
                return
            if ch == "\\":
                esc_line, esc_col = self.line, self.col
                self._advance()
                code = self._peek()
                if code not in _ESCAPES:
                    self._error(f"unknown escape sequence '\\{code}'", esc_line, esc_col)
                self._advance()
                buf.append(_ESCAPES[code])
                continue
            buf.append(self._advance())

    def _close_interpolation(self) -> None:
        line, col = self.line, self.col
        self._advance()
        self._emit(TokenKind.INTERP_END, "}", line, col)
        self._interp_depths.pop()
        self._lex_string_body(line, col, interpolated=True)

    # ── Operators ─────────────────────────────────────────────────

    def _lex_operator_or_punct(self) -> None:
        start_line, start_col = self.line, self.col
        for text, kind in OPERATORS:
            if self.source.startswith(text, self.pos):
                for _ in text:
                    self._advance()
                if self._interp_depths:
                    if kind == TokenKind.LBRACE:
                        self._interp_depths[-1] += 1
                    elif kind == TokenKind.RBRACE:
                        self._interp_depths[-1] -= 1
                self._emit(kind, text, start_line, start_col)
                return
        self._error(
            f"unexpected character {self.source[self.pos]!r}", start_line, start_col,
        )
