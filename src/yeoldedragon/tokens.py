"""Token kinds and token representation for the Dragon lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from yeoldedragon.source import Span


class TokenKind(Enum):
    # Declarations
    THINE = auto()
    FACT = auto()
    DON = auto()
    MATTER = auto()
    GUILD = auto()
    FORGE = auto()

    # Statements
    PROCLAIM = auto()
    RETURN = auto()
    PERCHANCE = auto()
    ELSE = auto()
    WHILST = auto()
    REPEATETH = auto()
    FORTILL = auto()
    IN = auto()
    BREAKETH = auto()

    # Expression keywords
    MINE = auto()
    NE = auto()
    SOME = auto()
    NAUGHT = auto()

    # Literals
    INTEGER_LIT = auto()
    FLOAT_LIT = auto()
    STRING_LIT = auto()
    BOOLEAN_LIT = auto()

    # String interpolation
    STRING_START = auto()
    INTERP_START = auto()
    INTERP_END = auto()
    STRING_END = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    POWER = auto()
    PLUS_PLUS = auto()
    MINUS_MINUS = auto()
    EQUAL = auto()
    NOT_EQUAL = auto()
    LESS = auto()
    GREATER = auto()
    LESS_EQUAL = auto()
    GREATER_EQUAL = auto()
    AND = auto()
    OR = auto()
    QUESTION = auto()
    COALESCE = auto()
    DOT = auto()
    QUESTION_DOT = auto()
    ELLIPSIS = auto()
    DOT_DOT_LESS = auto()
    ASSIGN = auto()
    ARROW = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    COLON = auto()
    SEMICOLON = auto()

    IDENTIFIER = auto()

    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span


KEYWORDS: dict[str, TokenKind] = {
    "thine": TokenKind.THINE,
    "fact": TokenKind.FACT,
    "don": TokenKind.DON,
    "matter": TokenKind.MATTER,
    "guild": TokenKind.GUILD,
    "forge": TokenKind.FORGE,
    "proclaim": TokenKind.PROCLAIM,
    "return": TokenKind.RETURN,
    "perchance": TokenKind.PERCHANCE,
    "else": TokenKind.ELSE,
    "whilst": TokenKind.WHILST,
    "repeateth": TokenKind.REPEATETH,
    "fortill": TokenKind.FORTILL,
    "in": TokenKind.IN,
    "breaketh": TokenKind.BREAKETH,
    "mine": TokenKind.MINE,
    "ne": TokenKind.NE,
    "some": TokenKind.SOME,
    "naught": TokenKind.NAUGHT,
    "shall": TokenKind.BOOLEAN_LIT,
    "shant": TokenKind.BOOLEAN_LIT,
}

# Names of the built-in types; they are identifiers to the lexer and are
# resolved by the analyzer.
TYPE_NAMES = frozenset({"int", "float", "string", "bool", "zilch", "any"})

# Longest match first.
OPERATORS: list[tuple[str, TokenKind]] = [
    ("...", TokenKind.ELLIPSIS),
    ("..<", TokenKind.DOT_DOT_LESS),
    ("**", TokenKind.POWER),
    ("++", TokenKind.PLUS_PLUS),
    ("--", TokenKind.MINUS_MINUS),
    ("==", TokenKind.EQUAL),
    ("!=", TokenKind.NOT_EQUAL),
    ("<=", TokenKind.LESS_EQUAL),
    (">=", TokenKind.GREATER_EQUAL),
    ("&&", TokenKind.AND),
    ("||", TokenKind.OR),
    ("??", TokenKind.COALESCE),
    ("?.", TokenKind.QUESTION_DOT),
    ("->", TokenKind.ARROW),
    ("+", TokenKind.PLUS),
    ("-", TokenKind.MINUS),
    ("*", TokenKind.STAR),
    ("/", TokenKind.SLASH),
    ("<", TokenKind.LESS),
    (">", TokenKind.GREATER),
    ("?", TokenKind.QUESTION),
    (".", TokenKind.DOT),
    ("=", TokenKind.ASSIGN),
    ("(", TokenKind.LPAREN),
    (")", TokenKind.RPAREN),
    ("[", TokenKind.LBRACKET),
    ("]", TokenKind.RBRACKET),
    ("{", TokenKind.LBRACE),
    ("}", TokenKind.RBRACE),
    (",", TokenKind.COMMA),
    (":", TokenKind.COLON),
    (";", TokenKind.SEMICOLON),
]
