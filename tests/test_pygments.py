"""Tests for the Dragon Pygments lexer."""

from __future__ import annotations

from pygments.token import Comment, Keyword, Name, Number, Operator, Punctuation, String

from pygments_dragon import DragonLexer


def tokens(source: str) -> list[tuple]:
    """Helper: lex source, dropping whitespace tokens."""
    return [(t, v) for t, v in DragonLexer().get_tokens(source) if v.strip()]


class TestDragonLexer:
    """Test the Pygments lexer."""

    def test_metadata(self):
        assert DragonLexer.name == "Dragon"
        assert "dragon" in DragonLexer.aliases
        assert "*.dragon" in DragonLexer.filenames

    def test_declaration(self):
        assert tokens("thine x: int = 1;") == [
            (Keyword.Declaration, "thine"),
            (Name, "x"),
            (Punctuation, ":"),
            (Keyword.Type, "int"),
            (Operator, "="),
            (Number.Integer, "1"),
            (Punctuation, ";"),
        ]

    def test_keywords_not_prefixes(self):
        result = tokens("fortill i in items")
        assert result[0] == (Keyword, "fortill")
        assert result[2] == (Keyword, "in")
        assert result[3] == (Name, "items")

    def test_constants(self):
        assert [t for t, _ in tokens("shall shant naught")] == [Keyword.Constant] * 3

    def test_numbers(self):
        assert tokens("1_000 2.5 1e9") == [
            (Number.Integer, "1_000"),
            (Number.Float, "2.5"),
            (Number.Float, "1e9"),
        ]

    def test_comment(self):
        assert tokens("// a note") == [(Comment.Single, "// a note")]

    def test_operators(self):
        values = [v for t, v in tokens("a ?? b ?. c ..< d ** e") if t is Operator]
        assert values == ["??", "?.", "..<", "**"]

    def test_function_name(self):
        assert tokens("hypot(x: 1.0)")[0] == (Name.Function, "hypot")

    def test_unicode_name(self):
        assert tokens("π")[0] == (Name, "π")

    def test_interpolated_string(self):
        result = tokens('"a ${b + 1} c"')
        assert result[0] == (String, '"')
        assert (String.Interpol, "${") in result
        assert (Name, "b") in result
        assert (String.Interpol, "}") in result
        assert result[-1] == (String, '"')

    def test_escape(self):
        assert (String.Escape, "\\n") in tokens('"x\\ny"')
