"""Pygments lexer for the Ye Olde Dragon programming language."""

from pygments.lexer import RegexLexer, include, words
from pygments.token import (
    Comment,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
)


class DragonLexer(RegexLexer):
    """Pygments lexer for the Ye Olde Dragon programming language."""

    name = "Dragon"
    aliases = ["dragon", "yeoldedragon"]
    filenames = ["*.dragon"]
    mimetypes = ["text/x-dragon"]

    tokens = {
        "root": [
            (r"\s+", Text),
            (r"//.*$", Comment.Single),
            (r'"', String, "string"),
            # Numbers
            (r"[0-9][0-9_]*(\.[0-9][0-9_]*)?[eE][+\-]?[0-9]+", Number.Float),
            (r"[0-9][0-9_]*\.[0-9][0-9_]*", Number.Float),
            (r"[0-9][0-9_]*", Number.Integer),
            # Declaration keywords
            (
                words(
                    ("thine", "fact", "don", "matter", "guild", "forge"),
                    prefix=r"\b",
                    suffix=r"\b",
                ),
                Keyword.Declaration,
            ),
            # Core keywords
            (
                words(
                    (
                        "proclaim",
                        "return",
                        "perchance",
                        "else",
                        "whilst",
                        "repeateth",
                        "fortill",
                        "in",
                        "breaketh",
                        "ne",
                        "some",
                    ),
                    prefix=r"\b",
                    suffix=r"\b",
                ),
                Keyword,
            ),
            (r"\bmine\b", Name.Builtin.Pseudo),
            (r"\b(shall|shant|naught)\b", Keyword.Constant),
            # Built-in types
            (
                words(
                    ("int", "float", "string", "bool", "zilch", "any"),
                    prefix=r"\b",
                    suffix=r"\b",
                ),
                Keyword.Type,
            ),
            # Operators (multi-char before single-char)
            (r"\.\.\.|\.\.<", Operator),
            (r"\*\*|\+\+|--|==|!=|<=|>=|&&|\|\||\?\?|\?\.|->", Operator),
            (r"[+\-*/<>?=.]", Operator),
            # Function names at a call or declaration
            (r"[^\W\d]\w*(?=\s*\()", Name.Function),
            (r"[^\W\d]\w*", Name),
            (r"[(),;\[\]{}:]", Punctuation),
        ],
        "string": [
            (r'\\[nt\\"$0]', String.Escape),
            (r"\$\{", String.Interpol, "interp"),
            (r'[^"\\$]+', String),
            (r"\$", String),
            (r'"', String, "#pop"),
        ],
        # ${...} holds a full expression; nested braces push again.
        "interp": [
            (r"\}", String.Interpol, "#pop"),
            (r"\{", Punctuation, "interp-brace"),
            include("root"),
        ],
        "interp-brace": [
            (r"\}", Punctuation, "#pop"),
            (r"\{", Punctuation, "#push"),
            include("root"),
        ],
    }
