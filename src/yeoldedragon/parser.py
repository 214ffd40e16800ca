"""Parser for the Dragon language.

Transforms a token stream into a syntax tree using a Pratt expression
parser for expressions and recursive descent for statements. The first
malformed construct raises ``DragonSyntaxError``.
"""

from __future__ import annotations

from yeoldedragon.ast_nodes import (
    Argument,
    Assignment,
    BinaryExpr,
    BooleanLit,
    BreakStmt,
    CallExpr,
    CallStmt,
    CoalesceExpr,
    Expr,
    FieldDef,
    FloatLit,
    ForEachLoop,
    FunctionDef,
    FunctionTypeExpr,
    GuildDef,
    IdentifierExpr,
    IfStmt,
    IncDecStmt,
    IndexExpr,
    Initializer,
    IntegerLit,
    ListLiteral,
    ListTypeExpr,
    MatterDef,
    MemberExpr,
    NamedType,
    NaughtExpr,
    OptionalTypeExpr,
    Param,
    PrintStmt,
    Program,
    RangeLoop,
    RepeatStmt,
    ReturnStmt,
    SelfExpr,
    Stmt,
    StringInterp,
    StringLit,
    TernaryExpr,
    TypeExpr,
    UnaryExpr,
    VarDecl,
    WhileStmt,
)
from yeoldedragon.errors import DragonSyntaxError
from yeoldedragon.source import Span
from yeoldedragon.tokens import KEYWORDS, OPERATORS, Token, TokenKind

# ── Binding powers for Pratt parser ─────────────────────────────

# (left_bp, right_bp) for infix operators; right_bp < left_bp means
# right-associative.
_INFIX_BP: dict[TokenKind, tuple[int, int]] = {
    TokenKind.COALESCE: (4, 3),
    TokenKind.OR: (5, 6),
    TokenKind.AND: (7, 8),
    TokenKind.EQUAL: (9, 10),
    TokenKind.NOT_EQUAL: (9, 10),
    TokenKind.LESS: (9, 10),
    TokenKind.GREATER: (9, 10),
    TokenKind.LESS_EQUAL: (9, 10),
    TokenKind.GREATER_EQUAL: (9, 10),
    TokenKind.PLUS: (11, 12),
    TokenKind.MINUS: (11, 12),
    TokenKind.STAR: (13, 14),
    TokenKind.SLASH: (13, 14),
    TokenKind.POWER: (17, 16),
}

_TERNARY_BP = 2
_PREFIX_BP = 15  # right bp for unary -, ne, some
_POSTFIX_BP = 19  # left bp for (), [], ., ?.

_PREFIX_OPS: dict[TokenKind, str] = {
    TokenKind.MINUS: "-",
    TokenKind.NE: "ne",
    TokenKind.SOME: "some",
}

_TOKEN_TEXT: dict[TokenKind, str] = {
    **{kind: text for text, kind in OPERATORS},
    **{kind: text for text, kind in KEYWORDS.items() if kind != TokenKind.BOOLEAN_LIT},
    TokenKind.IDENTIFIER: "identifier",
    TokenKind.EOF: "end of input",
}


def _describe(kind: TokenKind) -> str:
    return _TOKEN_TEXT.get(kind, kind.name.lower())


class Parser:
    """Parses a list of tokens into a Dragon syntax tree."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        self.tokens = tokens
        self.pos = 0
        self.filename = filename

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _at_any(self, *kinds: TokenKind) -> bool:
        return self._current().kind in kinds

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _expect(self, kind: TokenKind) -> Token:
        if self._current().kind == kind:
            return self._advance()
        tok = self._current()
        found = tok.value if tok.kind != TokenKind.EOF else "end of input"
        self._error(f"expected '{_describe(kind)}' but found {found!r}", tok.span)

    def _error(self, message: str, span: Span) -> None:
        raise DragonSyntaxError(message, span)

    # ── Top-level parsing ────────────────────────────────────────

    def parse(self) -> Program:
        """Parse the entire token stream into a Program."""
        statements: list[Stmt] = []
        while not self._at(TokenKind.EOF):
            statements.append(self._parse_statement())
        end = self._current().span
        return Program(statements, Span(self.filename, 1, 1, end.end_line, end.end_col))

    def _parse_block(self) -> list[Stmt]:
        self._expect(TokenKind.LBRACE)
        body: list[Stmt] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            body.append(self._parse_statement())
        self._expect(TokenKind.RBRACE)
        return body

    # ── Statements ───────────────────────────────────────────────

    def _parse_statement(self) -> Stmt:
        tok = self._current()
        match tok.kind:
            case TokenKind.THINE | TokenKind.FACT:
                return self._parse_var_decl()
            case TokenKind.DON:
                return self._parse_function_def()
            case TokenKind.MATTER:
                return self._parse_matter_def()
            case TokenKind.GUILD:
                return self._parse_guild_def()
            case TokenKind.PROCLAIM:
                self._advance()
                value = self._parse_expression(0)
                end = self._expect(TokenKind.SEMICOLON)
                return PrintStmt(value, tok.span.to(end.span))
            case TokenKind.RETURN:
                self._advance()
                value = None
                if not self._at(TokenKind.SEMICOLON):
                    value = self._parse_expression(0)
                end = self._expect(TokenKind.SEMICOLON)
                return ReturnStmt(value, tok.span.to(end.span))
            case TokenKind.PERCHANCE:
                return self._parse_if()
            case TokenKind.WHILST:
                self._advance()
                condition = self._parse_expression(0)
                body = self._parse_block()
                return WhileStmt(condition, body, tok.span.to(self._peek(-1).span))
            case TokenKind.REPEATETH:
                self._advance()
                count = self._parse_expression(0)
                body = self._parse_block()
                return RepeatStmt(count, body, tok.span.to(self._peek(-1).span))
            case TokenKind.FORTILL:
                return self._parse_for()
            case TokenKind.BREAKETH:
                self._advance()
                end = self._expect(TokenKind.SEMICOLON)
                return BreakStmt(tok.span.to(end.span))
        return self._parse_simple_statement()

    def _parse_simple_statement(self) -> Stmt:
        """Assignment, increment/decrement, or call statement."""
        start = self._current()
        target = self._parse_expression(0)
        if self._at(TokenKind.ASSIGN):
            self._advance()
            value = self._parse_expression(0)
            end = self._expect(TokenKind.SEMICOLON)
            return Assignment(target, value, start.span.to(end.span))
        if self._at_any(TokenKind.PLUS_PLUS, TokenKind.MINUS_MINUS):
            op = self._advance().value
            end = self._expect(TokenKind.SEMICOLON)
            return IncDecStmt(target, op, start.span.to(end.span))
        if isinstance(target, CallExpr):
            end = self._expect(TokenKind.SEMICOLON)
            return CallStmt(target, start.span.to(end.span))
        self._error("expected a statement", start.span)

    def _parse_var_decl(self) -> VarDecl:
        kw = self._advance()
        name = self._expect(TokenKind.IDENTIFIER)
        self._expect(TokenKind.COLON)
        type_expr = self._parse_type_expr()
        self._expect(TokenKind.ASSIGN)
        value = self._parse_expression(0)
        end = self._expect(TokenKind.SEMICOLON)
        return VarDecl(
            kw.kind == TokenKind.THINE, name.value, type_expr, value,
            kw.span.to(end.span),
        )

    def _parse_function_def(self) -> FunctionDef:
        kw = self._expect(TokenKind.DON)
        name = self._expect(TokenKind.IDENTIFIER)
        params = self._parse_param_list()
        return_type = None
        if self._at(TokenKind.ARROW):
            self._advance()
            return_type = self._parse_type_expr()
        body = self._parse_block()
        return FunctionDef(
            name.value, params, return_type, body,
            kw.span.to(self._peek(-1).span),
        )

    def _parse_param_list(self) -> list[Param]:
        self._expect(TokenKind.LPAREN)
        params: list[Param] = []
        while not self._at_any(TokenKind.RPAREN, TokenKind.EOF):
            if params:
                self._expect(TokenKind.COMMA)
            name = self._expect(TokenKind.IDENTIFIER)
            self._expect(TokenKind.COLON)
            type_expr = self._parse_type_expr()
            params.append(Param(name.value, type_expr, name.span.to(type_expr.span)))
        self._expect(TokenKind.RPAREN)
        return params

    def _parse_field_def(self) -> FieldDef:
        name = self._expect(TokenKind.IDENTIFIER)
        self._expect(TokenKind.COLON)
        type_expr = self._parse_type_expr()
        return FieldDef(name.value, type_expr, name.span.to(type_expr.span))

    def _parse_matter_def(self) -> MatterDef:
        kw = self._advance()
        name = self._expect(TokenKind.IDENTIFIER)
        self._expect(TokenKind.LBRACE)
        fields: list[FieldDef] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            fields.append(self._parse_field_def())
            if not self._at(TokenKind.RBRACE):
                self._expect(TokenKind.COMMA)
        end = self._expect(TokenKind.RBRACE)
        return MatterDef(name.value, fields, kw.span.to(end.span))

    def _parse_guild_def(self) -> GuildDef:
        kw = self._advance()
        name = self._expect(TokenKind.IDENTIFIER)
        self._expect(TokenKind.LBRACE)
        fields: list[FieldDef] = []
        methods: list[FunctionDef] = []
        initializer: Initializer | None = None
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            tok = self._current()
            if tok.kind == TokenKind.FORGE:
                if initializer is not None:
                    self._error(f"guild {name.value} has more than one forge", tok.span)
                self._advance()
                params = self._parse_param_list()
                body = self._parse_block()
                initializer = Initializer(params, body, tok.span.to(self._peek(-1).span))
            elif tok.kind == TokenKind.DON:
                methods.append(self._parse_function_def())
            else:
                fields.append(self._parse_field_def())
                self._expect(TokenKind.SEMICOLON)
        end = self._expect(TokenKind.RBRACE)
        return GuildDef(name.value, fields, initializer, methods, kw.span.to(end.span))

    def _parse_if(self) -> IfStmt:
        kw = self._expect(TokenKind.PERCHANCE)
        condition = self._parse_expression(0)
        consequent = self._parse_block()
        alternate: list[Stmt] | IfStmt | None = None
        if self._at(TokenKind.ELSE):
            self._advance()
            if self._at(TokenKind.PERCHANCE):
                alternate = self._parse_if()
            else:
                alternate = self._parse_block()
        return IfStmt(condition, consequent, alternate, kw.span.to(self._peek(-1).span))

    def _parse_for(self) -> RangeLoop | ForEachLoop:
        kw = self._advance()
        iterator = self._expect(TokenKind.IDENTIFIER)
        self._expect(TokenKind.IN)
        first = self._parse_expression(0)
        if self._at_any(TokenKind.ELLIPSIS, TokenKind.DOT_DOT_LESS):
            op = self._advance().value
            high = self._parse_expression(0)
            body = self._parse_block()
            return RangeLoop(
                iterator.value, first, op, high, body,
                kw.span.to(self._peek(-1).span),
            )
        body = self._parse_block()
        return ForEachLoop(iterator.value, first, body, kw.span.to(self._peek(-1).span))

    # ── Type expressions ─────────────────────────────────────────

    def _parse_type_expr(self) -> TypeExpr:
        tok = self._current()
        result: TypeExpr
        if tok.kind == TokenKind.IDENTIFIER:
            self._advance()
            result = NamedType(tok.value, tok.span)
        elif tok.kind == TokenKind.LBRACKET:
            self._advance()
            element = self._parse_type_expr()
            end = self._expect(TokenKind.RBRACKET)
            result = ListTypeExpr(element, tok.span.to(end.span))
        elif tok.kind == TokenKind.LPAREN:
            self._advance()
            params: list[TypeExpr] = []
            while not self._at_any(TokenKind.RPAREN, TokenKind.EOF):
                if params:
                    self._expect(TokenKind.COMMA)
                params.append(self._parse_type_expr())
            self._expect(TokenKind.RPAREN)
            self._expect(TokenKind.ARROW)
            ret = self._parse_type_expr()
            result = FunctionTypeExpr(params, ret, tok.span.to(ret.span))
        else:
            self._error("type expected", tok.span)

        while self._at(TokenKind.QUESTION):
            q = self._advance()
            result = OptionalTypeExpr(result, result.span.to(q.span))
        return result

    # ── Expressions ──────────────────────────────────────────────

    def _parse_expression(self, min_bp: int) -> Expr:
        """Parse an expression using Pratt parsing with binding powers."""
        left = self._parse_prefix()

        while True:
            tok = self._current()

            if tok.kind in (TokenKind.DOT, TokenKind.QUESTION_DOT):
                if _POSTFIX_BP < min_bp:
                    break
                self._advance()
                name = self._expect(TokenKind.IDENTIFIER)
                left = MemberExpr(left, tok.value, name.value, left.span.to(name.span))
                continue

            if tok.kind == TokenKind.LPAREN:
                if _POSTFIX_BP < min_bp:
                    break
                left = self._parse_call_expr(left)
                continue

            if tok.kind == TokenKind.LBRACKET:
                if _POSTFIX_BP < min_bp:
                    break
                self._advance()
                index = self._parse_expression(0)
                end = self._expect(TokenKind.RBRACKET)
                left = IndexExpr(left, index, left.span.to(end.span))
                continue

            if tok.kind == TokenKind.QUESTION:
                if _TERNARY_BP < min_bp:
                    break
                self._advance()
                consequent = self._parse_expression(0)
                self._expect(TokenKind.COLON)
                alternate = self._parse_expression(_TERNARY_BP)
                left = TernaryExpr(left, consequent, alternate, left.span.to(alternate.span))
                continue

            if tok.kind in _INFIX_BP:
                left_bp, right_bp = _INFIX_BP[tok.kind]
                if left_bp < min_bp:
                    break
                self._advance()
                right = self._parse_expression(right_bp)
                if tok.kind == TokenKind.COALESCE:
                    left = CoalesceExpr(left, right, left.span.to(right.span))
                else:
                    left = BinaryExpr(left, tok.value, right, left.span.to(right.span))
                continue

            break

        return left

    def _parse_prefix(self) -> Expr:
        """Parse a prefix expression (atom or unary operator)."""
        tok = self._current()

        if tok.kind in _PREFIX_OPS:
            self._advance()
            operand = self._parse_expression(_PREFIX_BP)
            return UnaryExpr(_PREFIX_OPS[tok.kind], operand, tok.span.to(operand.span))

        match tok.kind:
            case TokenKind.INTEGER_LIT:
                self._advance()
                return IntegerLit(tok.value, tok.span)
            case TokenKind.FLOAT_LIT:
                self._advance()
                return FloatLit(tok.value, tok.span)
            case TokenKind.BOOLEAN_LIT:
                self._advance()
                return BooleanLit(tok.value == "shall", tok.span)
            case TokenKind.STRING_LIT:
                self._advance()
                return StringLit(tok.value, tok.span)
            case TokenKind.STRING_START:
                return self._parse_string_interp()
            case TokenKind.IDENTIFIER:
                self._advance()
                return IdentifierExpr(tok.value, tok.span)
            case TokenKind.MINE:
                self._advance()
                return SelfExpr(tok.span)
            case TokenKind.NAUGHT:
                self._advance()
                type_expr = self._parse_type_expr()
                return NaughtExpr(type_expr, tok.span.to(type_expr.span))
            case TokenKind.LPAREN:
                self._advance()
                expr = self._parse_expression(0)
                self._expect(TokenKind.RPAREN)
                return expr
            case TokenKind.LBRACKET:
                return self._parse_list_literal()

        found = tok.value if tok.kind != TokenKind.EOF else "end of input"
        self._error(f"expected an expression but found {found!r}", tok.span)

    def _parse_string_interp(self) -> StringInterp:
        start = self._advance()  # STRING_START
        parts: list[Expr] = []
        while not self._at_any(TokenKind.STRING_END, TokenKind.EOF):
            if self._at(TokenKind.STRING_LIT):
                tok = self._advance()
                parts.append(StringLit(tok.value, tok.span))
            else:
                self._expect(TokenKind.INTERP_START)
                parts.append(self._parse_expression(0))
                self._expect(TokenKind.INTERP_END)
        end = self._expect(TokenKind.STRING_END)
        return StringInterp(parts, start.span.to(end.span))

    def _parse_call_expr(self, callee: Expr) -> CallExpr:
        """Parse a call: callee(name: value, ...)."""
        self._advance()  # (
        args: list[Argument] = []
        while not self._at_any(TokenKind.RPAREN, TokenKind.EOF):
            if args:
                self._expect(TokenKind.COMMA)
            start = self._current()
            name = None
            if start.kind == TokenKind.IDENTIFIER and self._peek(1).kind == TokenKind.COLON:
                name = start.value
                self._advance()
                self._advance()
            value = self._parse_expression(0)
            args.append(Argument(name, value, start.span.to(value.span)))
        end = self._expect(TokenKind.RPAREN)
        return CallExpr(callee, args, callee.span.to(end.span))

    def _parse_list_literal(self) -> ListLiteral:
        start = self._advance()  # [
        elements: list[Expr] = []
        while not self._at_any(TokenKind.RBRACKET, TokenKind.EOF):
            if elements:
                self._expect(TokenKind.COMMA)
            elements.append(self._parse_expression(0))
        end = self._expect(TokenKind.RBRACKET)
        return ListLiteral(elements, start.span.to(end.span))


def parse(source: str, filename: str = "<stdin>") -> Program:
    """Lex and parse Dragon source text."""
    from yeoldedragon.lexer import Lexer

    return Parser(Lexer(source, filename).lex(), filename).parse()
