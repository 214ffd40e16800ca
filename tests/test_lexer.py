"""Tests for the Dragon lexer."""

from __future__ import annotations

import pytest

from yeoldedragon.errors import DragonSyntaxError
from yeoldedragon.lexer import Lexer
from yeoldedragon.tokens import TokenKind


def lex(source: str) -> list[tuple[TokenKind, str]]:
    """Helper: lex source and return (kind, value) pairs, excluding EOF."""
    tokens = Lexer(source).lex()
    return [(t.kind, t.value) for t in tokens if t.kind != TokenKind.EOF]


def kinds(source: str) -> list[TokenKind]:
    """Helper: lex source and return just the token kinds, excluding EOF."""
    tokens = Lexer(source).lex()
    return [t.kind for t in tokens if t.kind != TokenKind.EOF]


class TestLexerBasic:
    """Test basic tokenization."""

    def test_empty_source(self):
        tokens = Lexer("").lex()
        assert len(tokens) == 1
        assert tokens[0].kind == TokenKind.EOF

    def test_identifier(self):
        assert lex("dragon_1") == [(TokenKind.IDENTIFIER, "dragon_1")]

    def test_unicode_identifier(self):
        assert lex("π") == [(TokenKind.IDENTIFIER, "π")]

    def test_keywords(self):
        for kw in ["thine", "fact", "don", "matter", "guild", "forge", "proclaim",
                   "return", "perchance", "else", "whilst", "repeateth", "fortill",
                   "in", "breaketh", "mine", "ne", "some", "naught"]:
            result = lex(kw)
            assert len(result) == 1, f"keyword {kw} should lex to one token"
            assert result[0][0] != TokenKind.IDENTIFIER

    def test_keyword_prefix_is_identifier(self):
        assert lex("thinely") == [(TokenKind.IDENTIFIER, "thinely")]

    def test_type_names_are_identifiers(self):
        assert kinds("int float zilch") == [TokenKind.IDENTIFIER] * 3

    def test_comments_skipped(self):
        assert lex("x // the rest is ignored\ny") == [
            (TokenKind.IDENTIFIER, "x"),
            (TokenKind.IDENTIFIER, "y"),
        ]

    def test_spans(self):
        tokens = Lexer("thine\n  x", "f.dragon").lex()
        assert (tokens[0].span.start_line, tokens[0].span.start_col) == (1, 1)
        assert tokens[0].span.end_col == 5
        assert (tokens[1].span.start_line, tokens[1].span.start_col) == (2, 3)
        assert tokens[1].span.file == "f.dragon"


class TestLexerLiterals:
    """Test number and string literals."""

    def test_integer(self):
        assert lex("42") == [(TokenKind.INTEGER_LIT, "42")]

    def test_integer_underscores(self):
        assert lex("1_000_000") == [(TokenKind.INTEGER_LIT, "1000000")]

    def test_float(self):
        assert lex("3.14") == [(TokenKind.FLOAT_LIT, "3.14")]

    def test_float_exponent(self):
        assert lex("2.5e-3") == [(TokenKind.FLOAT_LIT, "2.5e-3")]
        assert lex("1E9") == [(TokenKind.FLOAT_LIT, "1E9")]

    def test_dot_without_digits_is_not_float(self):
        assert kinds("1...5") == [
            TokenKind.INTEGER_LIT, TokenKind.ELLIPSIS, TokenKind.INTEGER_LIT,
        ]

    def test_booleans(self):
        assert lex("shall shant") == [
            (TokenKind.BOOLEAN_LIT, "shall"),
            (TokenKind.BOOLEAN_LIT, "shant"),
        ]

    def test_plain_string(self):
        assert lex('"hark"') == [(TokenKind.STRING_LIT, "hark")]

    def test_string_escapes(self):
        assert lex(r'"a\nb\t\"c\"\\\$"') == [(TokenKind.STRING_LIT, 'a\nb\t"c"\\$')]

    def test_escaped_dollar_is_not_interpolation(self):
        assert kinds(r'"\${x}"') == [TokenKind.STRING_LIT]


class TestLexerInterpolation:
    """Test string interpolation tokens."""

    def test_single_interpolation(self):
        assert lex('"hi ${name}!"') == [
            (TokenKind.STRING_START, '"'),
            (TokenKind.STRING_LIT, "hi "),
            (TokenKind.INTERP_START, "${"),
            (TokenKind.IDENTIFIER, "name"),
            (TokenKind.INTERP_END, "}"),
            (TokenKind.STRING_LIT, "!"),
            (TokenKind.STRING_END, '"'),
        ]

    def test_interpolation_at_edges(self):
        assert kinds('"${a}${b}"') == [
            TokenKind.STRING_START,
            TokenKind.INTERP_START, TokenKind.IDENTIFIER, TokenKind.INTERP_END,
            TokenKind.INTERP_START, TokenKind.IDENTIFIER, TokenKind.INTERP_END,
            TokenKind.STRING_END,
        ]

    def test_nested_string_in_interpolation(self):
        result = kinds('"a${"b${c}"}"')
        assert result.count(TokenKind.STRING_START) == 2
        assert result.count(TokenKind.STRING_END) == 2

    def test_expression_in_interpolation(self):
        assert kinds('"${x + 1}"')[2:5] == [
            TokenKind.IDENTIFIER, TokenKind.PLUS, TokenKind.INTEGER_LIT,
        ]


class TestLexerOperators:
    """Test operator and punctuation tokens."""

    def test_longest_match(self):
        assert kinds("** ++ -- == != <= >= && || ?? ?. -> ... ..<") == [
            TokenKind.POWER, TokenKind.PLUS_PLUS, TokenKind.MINUS_MINUS,
            TokenKind.EQUAL, TokenKind.NOT_EQUAL, TokenKind.LESS_EQUAL,
            TokenKind.GREATER_EQUAL, TokenKind.AND, TokenKind.OR,
            TokenKind.COALESCE, TokenKind.QUESTION_DOT, TokenKind.ARROW,
            TokenKind.ELLIPSIS, TokenKind.DOT_DOT_LESS,
        ]

    def test_punctuation(self):
        assert kinds("( ) [ ] { } , : ;") == [
            TokenKind.LPAREN, TokenKind.RPAREN, TokenKind.LBRACKET,
            TokenKind.RBRACKET, TokenKind.LBRACE, TokenKind.RBRACE,
            TokenKind.COMMA, TokenKind.COLON, TokenKind.SEMICOLON,
        ]


class TestLexerErrors:
    """Test lexical errors."""

    def test_unexpected_character(self):
        with pytest.raises(DragonSyntaxError) as exc_info:
            Lexer("x = #;").lex()
        assert exc_info.value.diagnostic.code == "E100"
        assert str(exc_info.value).startswith("line 1, column 5")

    def test_unterminated_string(self):
        with pytest.raises(DragonSyntaxError, match="unterminated string"):
            Lexer('"never closed').lex()

    def test_string_cannot_span_lines(self):
        with pytest.raises(DragonSyntaxError):
            Lexer('"one\ntwo"').lex()

    def test_unknown_escape(self):
        with pytest.raises(DragonSyntaxError, match="escape"):
            Lexer(r'"\q"').lex()

    def test_unterminated_interpolation(self):
        with pytest.raises(DragonSyntaxError):
            Lexer('"a ${b').lex()

    def test_trailing_underscore_number(self):
        with pytest.raises(DragonSyntaxError, match="malformed number"):
            Lexer("12_").lex()
