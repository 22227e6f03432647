"""
rath Language Parser

Parses rath source into a syntax tree of `ASTNode` instances.

The parser pulls tokens on demand from a `Lexer` through a small
`TokenBuffer`, which gives it as much lookahead as it needs without
re-scanning characters. Expressions are parsed by precedence climbing;
everything else is plain recursive descent.

Supported Constructs
--------------------
- Declarations: `let [ref] [const] a, [ref] [const] [...]b = expr`
- Functions: `func name(a, ref b, ...rest) -> body` or `func name a, b -> body`
- Conditionals: `if (cond) [then] body [else body]`, `if cond then body`
- Switches: `switch x -> { case 1 case 2 -> a  case n when n > 9 -> b }`
- Returns, calls `f(a, b)`, blocks `{ ... }`, unary `-`/`&`, binary operators

Statement Terminators
---------------------
Inside a block a statement ends with a newline or `;` unless it ends in a
brace-delimited construct (block, switch, or a body that is one).

Entry Points
------------
- `parse(filename, source)`: Parse a source unit; returns `None` when empty.
- `Parser.parse(filename, source)`: Same, reusing a configured parser.

Raises
------
LexError
    Propagated from the lexer.
ParseError
    On the first unexpected or missing token (no error recovery).
DeclarationError
    When a `let` names no variable or packs its first variable.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace

from rath.rath_ast import (
    Assign,
    ASTNode,
    BinaryOp,
    Block,
    Call,
    Case,
    CaseCondition,
    Constant,
    Function,
    If,
    Return,
    Switch,
    UnaryOp,
    Variable,
)
from rath.rath_constants import (
    ARROW,
    COMMA,
    DEFAULT_FILENAME,
    DEFAULT_MAX_DEPTH,
    EOF,
    FLAG_CONST,
    FLAG_PACKED,
    FLAG_REF,
    IDENT,
    KEYWORD,
    KW_CASE,
    KW_CONST,
    KW_ELSE,
    KW_FUNC,
    KW_IF,
    KW_LET,
    KW_NULL,
    KW_REF,
    KW_RETURN,
    KW_SWITCH,
    KW_THEN,
    KW_THIS,
    KW_WHEN,
    LCURLY,
    LPAREN,
    NEWLINE,
    NUMBER,
    OPERATOR,
    RCURLY,
    RPAREN,
    SEMICOLON,
    STRING,
    VARARGS,
    operator_precedence,
    right_assoc_operators,
    unary_operators,
)
from rath.rath_errors import DeclarationError, ParseError, RathError, SourceFile
from rath.rath_lexer import CharacterStream, Lexer, Token

logger = logging.getLogger(__name__)


def describe(token: Token) -> str:
    """Human-readable name of a token for error messages."""
    if token.kind == EOF:
        return "end of input"
    if token.kind == NEWLINE:
        return "newline"
    return f"'{token.text}'"


def expects_end(expr: ASTNode | None) -> bool:
    """Whether a statement must be followed by a newline or `;`.

    Statements that end in a brace-delimited construct do not.
    """
    if expr is None:
        return False
    if isinstance(expr, (Block, Switch)):
        return False
    if isinstance(expr, If):
        return expects_end(expr.else_body if expr.else_body is not None else expr.body)
    if isinstance(expr, BinaryOp):
        return expects_end(expr.right)
    if isinstance(expr, UnaryOp):
        return expects_end(expr.operand)
    if isinstance(expr, Function):
        return expects_end(expr.body)
    if isinstance(expr, (Return, Assign)) and expr.value is not None:
        return expects_end(expr.value)
    return True


class TokenBuffer:
    """FIFO of tokens pulled from the lexer but not yet consumed."""

    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer
        self.pending: deque[Token] = deque()

    def next(self) -> Token:
        if self.pending:
            return self.pending.popleft()
        return self.lexer.next_token()

    def peek(self, offset: int = 0) -> Token:
        """Returns the `offset`-th upcoming token without consuming it."""
        while len(self.pending) <= offset:
            self.pending.append(self.lexer.next_token())
        return self.pending[offset]


class Parser:
    """
    rath Parser Class

    Attributes
    ----------
    max_depth : int
        Ceiling on expression/statement nesting; deeper input raises
        `ParseError` instead of exhausting the interpreter stack.
    current : Token
        The token under the cursor.
    depth : int
        Current nesting depth.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.max_depth = max_depth
        self.source = SourceFile("")
        self.buffer: TokenBuffer | None = None
        self.current: Token = Token(EOF)
        self.depth = 0

    # Token handling

    def reset(self, filename: str, code: str) -> None:
        self.source = SourceFile(code, filename)
        self.buffer = TokenBuffer(Lexer(CharacterStream(self.source)))
        self.depth = 0
        self.current = self.buffer.next()

    def advance(self) -> Token:
        """Consumes the current token and returns it."""
        assert self.buffer is not None  # for mypy
        last = self.current
        self.current = self.buffer.next()
        return last

    def peek(self, offset: int = 1) -> Token:
        """Returns the token `offset` places after the current one."""
        assert self.buffer is not None  # for mypy
        return self.buffer.peek(offset - 1)

    def check(self, kind: str, text: str | None = None) -> bool:
        return self.current.kind == kind and (text is None or self.current.text == text)

    def accept(self, kind: str, text: str | None = None) -> Token | None:
        if self.check(kind, text):
            return self.advance()
        return None

    def expect(self, kind: str, text: str | None = None, what: str = "") -> Token:
        tok = self.accept(kind, text)
        if tok is None:
            expected = what or (f"'{text}'" if text else kind.lower())
            raise self.error(f"Expected {expected}, got {describe(self.current)}")
        return tok

    def skip_newlines(self) -> None:
        while self.accept(NEWLINE):
            pass

    def error(
        self,
        message: str,
        token: Token | None = None,
        cls: type[RathError] = ParseError,
    ) -> RathError:
        return self.source.token_error(cls, message, token or self.current)

    @contextmanager
    def nested(self) -> Iterator[None]:
        self.depth += 1
        try:
            if self.depth > self.max_depth:
                raise self.error(f"Nesting depth exceeds {self.max_depth}")
            yield
        finally:
            self.depth -= 1

    def consume_end(self, expr: ASTNode) -> None:
        """Consumes the terminator after a statement, if it needs one."""
        if expects_end(expr):
            if not self.accept(NEWLINE):
                self.expect(SEMICOLON, what="newline or ';'")
        else:
            self.accept(SEMICOLON)
        self.skip_newlines()

    # Entry points

    def parse(self, filename: str, code: str) -> ASTNode | None:
        """Parse a full source unit.

        Returns the single top-level expression, a `Block` when there are
        several, or `None` when the source holds no expression at all.
        """
        self.reset(filename, code)
        statements: list[ASTNode] = []

        self.skip_newlines()
        while not self.check(EOF):
            if self.check(RCURLY):
                raise self.error("Unmatched '}'")
            expr = self.parse_expr()
            statements.append(expr)
            if self.check(EOF):
                break
            self.consume_end(expr)

        logger.debug("Parsed %d top-level statement(s) from %s", len(statements), filename)
        if not statements:
            return None
        if len(statements) == 1:
            return statements[0]
        return Block(statements, token=statements[0].token)

    def parse_expr(self) -> ASTNode:
        """Parse one statement-level expression, dispatching on keywords."""
        with self.nested():
            self.skip_newlines()
            tok = self.current

            if tok.kind == LCURLY:
                return self.parse_block()

            if tok.kind == KEYWORD:
                if tok.text == KW_LET:
                    return self.parse_assign()
                if tok.text == KW_FUNC:
                    return self.parse_function(named=True)
                if tok.text == KW_IF:
                    return self.parse_if()
                if tok.text == KW_SWITCH:
                    return self.parse_switch()
                if tok.text == KW_RETURN:
                    return self.parse_return()

            return self.parse_statement()

    def parse_block(self) -> Block:
        """Parse a `{}`-enclosed list of statements."""
        block = Block(token=self.expect(LCURLY, what="'{'"))

        while True:
            self.skip_newlines()
            if self.accept(RCURLY):
                break
            if self.check(EOF):
                raise self.error("Expected '}', got end of input")

            expr = self.parse_expr()
            block.body.append(expr)

            if self.accept(RCURLY):
                break
            if self.check(EOF):
                raise self.error("Expected '}', got end of input")
            self.consume_end(expr)

        return block

    # Expressions

    def parse_statement(self, min_precedence: int = 0) -> ASTNode:
        """Precedence climbing over binary operators."""
        with self.nested():
            lhs = self.parse_positional()

            while self.current.kind == OPERATOR:
                op = self.current
                if op.text == VARARGS:
                    raise self.error("Illegal varargs '...' operator")
                precedence = operator_precedence[op.text]
                if precedence < min_precedence:
                    break
                if op.text == "=":
                    raise self.error("'=' only allowed in variable declaration")

                self.advance()
                next_precedence = precedence
                if op.text not in right_assoc_operators:
                    next_precedence += 1

                self.skip_newlines()
                rhs = self.parse_statement(next_precedence)
                lhs = BinaryOp(op.text, lhs, rhs, token=op)

            return lhs

    def parse_positional(self) -> ASTNode:
        """Parse a prefix operator, a parenthesized expression or a leaf."""
        tok = self.current

        if tok.kind == OPERATOR and tok.text in unary_operators:
            self.advance()
            operand = self.parse_statement(operator_precedence[tok.text])
            return UnaryOp(tok.text, operand, token=tok)

        if tok.kind == LPAREN:
            self.advance()
            self.skip_newlines()
            value = self.parse_statement()
            self.skip_newlines()
            self.expect(RPAREN, what="')'")
            return value

        if tok.kind == IDENT:
            if self.peek().kind == LPAREN:
                return self.parse_call()
            return self.parse_constant()

        if tok.kind in (NUMBER, STRING):
            return self.parse_constant()

        if tok.kind == KEYWORD:
            if tok.text == KW_FUNC:
                return self.parse_function(named=False)
            if tok.text == KW_SWITCH:
                return self.parse_switch()
            if tok.text == KW_IF:
                return self.parse_if()
            if tok.text in (KW_NULL, KW_THIS):
                return self.parse_constant()
            raise self.error(f"Unexpected keyword '{tok.text}'")

        raise self.error(f"Unexpected {describe(tok)}")

    def parse_constant(self) -> Constant:
        tok = self.advance()

        if tok.kind == STRING:
            return Constant.from_string(tok.text, tok)
        if tok.kind == NUMBER:
            if "." in tok.text:
                return Constant.from_float(float(tok.text), tok)
            return Constant.from_int(int(tok.text), tok)
        if tok.is_keyword(KW_NULL):
            return Constant.null(tok)
        if tok.is_keyword(KW_THIS):
            return Constant.this(tok)
        if tok.kind == IDENT:
            return Variable(tok.text, token=tok)

        raise self.error(f"Expected constant, got {describe(tok)}", tok)

    def parse_call(self) -> Call:
        """Parse `name(arg, arg, ...)`."""
        name = self.expect(IDENT, what="function name")
        self.expect(LPAREN, what="'('")
        call = Call(name.text, token=name)

        while True:
            self.skip_newlines()
            if self.accept(RPAREN):
                break
            call.args.append(self.parse_statement())
            self.skip_newlines()
            if self.accept(RPAREN):
                break
            self.expect(COMMA, what="',' or ')'")

        return call

    def parse_return(self) -> Return:
        token = self.expect(KEYWORD, KW_RETURN)
        if self.current.kind in (NEWLINE, SEMICOLON, RCURLY, EOF):
            return Return(None, token=token)
        return Return(self.parse_statement(), token=token)

    # Declarations and functions

    def parse_flags(self) -> int:
        """Consume any run of `ref` / `const` modifiers."""
        flags = 0
        while True:
            if self.accept(KEYWORD, KW_REF):
                flags |= FLAG_REF
            elif self.accept(KEYWORD, KW_CONST):
                flags |= FLAG_CONST
            else:
                return flags

    def parse_assign(self) -> Assign:
        """Parse `let [ref] [const] name (, [ref] [const] [...]name)* = expr`."""
        token = self.expect(KEYWORD, KW_LET)
        assign = Assign(token=token)
        flags = self.parse_flags()

        while not self.accept(OPERATOR, "="):
            var_flags = flags
            if assign.vars:
                self.expect(COMMA, what="',' or '='")
                var_flags |= self.parse_flags()
            if self.accept(OPERATOR, VARARGS):
                var_flags |= FLAG_PACKED
            name = self.expect(IDENT, what="variable name")
            assign.vars.append(Variable(name.text, var_flags, token=name))

        if not assign.vars:
            raise self.error("No variable name provided", token, DeclarationError)
        if assign.vars[0].is_packed:
            raise self.error(
                "First declared variable cannot be packed", token, DeclarationError
            )

        self.skip_newlines()
        assign.value = self.parse_statement()
        return assign

    def parse_function(self, named: bool = True) -> Function:
        """Parse `func [name] (params) -> body` or `func [name] params -> body`.

        At statement level a name is required unless the parameter list is
        parenthesized; inside an expression a name is only taken when it is
        directly followed by `(`.
        """
        token = self.expect(KEYWORD, KW_FUNC)
        func = Function(token=token)

        if self.check(IDENT) and (named or self.peek().kind == LPAREN):
            func.name = self.advance().text
        elif named and not self.check(LPAREN):
            raise self.error(f"Expected function name, got {describe(self.current)}")

        has_paren = self.accept(LPAREN) is not None
        closer = RPAREN if has_paren else ARROW

        while not self.accept(closer):
            if func.params:
                self.expect(COMMA, what="',' or " + ("')'" if has_paren else "'->'"))
            flags = self.parse_flags()
            if self.accept(OPERATOR, VARARGS):
                flags |= FLAG_PACKED
            name = self.expect(IDENT, what="parameter name")
            func.params.append(Variable(name.text, flags, token=name))

        if has_paren:
            self.accept(ARROW)

        func.body = self.parse_expr()
        return func

    # Control flow

    def else_follows(self) -> bool:
        """Whether an `else` comes next, possibly after a line break."""
        offset = 0
        tok = self.current
        while tok.kind == NEWLINE:
            offset += 1
            tok = self.peek(offset)
        return tok.is_keyword(KW_ELSE)

    def parse_if(self) -> If:
        """Parse `if (cond) [then|->] body [else body]` or `if cond then|-> body`."""
        token = self.expect(KEYWORD, KW_IF)

        paren = self.accept(LPAREN)
        if paren:
            self.skip_newlines()
        condition = self.parse_statement()
        if paren:
            self.skip_newlines()
            self.expect(RPAREN, what="')'")

        if not self.accept(KEYWORD, KW_THEN):
            if paren:
                self.accept(ARROW)
            else:
                self.expect(ARROW, what="'then' or '->'")

        body = self.parse_expr()

        else_body = None
        if self.else_follows():
            self.skip_newlines()
            self.expect(KEYWORD, KW_ELSE)
            else_body = self.parse_expr()

        return If(condition, body, else_body, token=token)

    def parse_switch(self) -> Switch:
        """Parse `switch value [->] { case ... }`."""
        token = self.expect(KEYWORD, KW_SWITCH)
        switch = Switch(self.parse_statement(), token=token)

        self.skip_newlines()
        self.accept(ARROW)
        self.skip_newlines()
        self.expect(LCURLY, what="'{'")

        while True:
            self.skip_newlines()
            if self.accept(RCURLY):
                break
            switch.cases.append(self.parse_case(switch.value))

        return switch

    def parse_case(self, scrutinee: ASTNode | None) -> Case:
        """Parse one arm: `case v [when g] (case v [when g])* -> body`.

        Consecutive `case` clauses before one arrow are joined with `||`.
        """
        token = self.expect(KEYWORD, KW_CASE, what="'case'")
        condition = CaseCondition(token=token)
        self.parse_case_clause(condition, scrutinee)
        self.skip_newlines()

        while self.check(KEYWORD, KW_CASE):
            self.advance()
            self.parse_case_clause(condition, scrutinee)
            self.skip_newlines()

        self.expect(ARROW, what="'->'")
        body = self.parse_expr()
        return Case(condition, body, token=token)

    def parse_case_clause(
        self, condition: CaseCondition, scrutinee: ASTNode | None
    ) -> None:
        bound = self.parse_statement()

        if self.accept(KEYWORD, KW_WHEN):
            clause = self.parse_statement()
            condition.is_direct = False
        else:
            # borrows both operands; see rath_ast.BinaryOp
            token = scrutinee.token if scrutinee is not None else bound.token
            if token is not None:
                token = replace(token, text="==")
            clause = BinaryOp("==", scrutinee, bound, token=token, synthesized=True)

        condition.values.append(bound)
        if condition.condition is None:
            condition.condition = clause
        else:
            condition.condition = BinaryOp(
                "||", condition.condition, clause, token=bound.token
            )


def parse(
    filename: str = DEFAULT_FILENAME,
    source: str = "",
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ASTNode | None:
    """Parse `source`; returns the tree root, or `None` for empty input."""
    return Parser(max_depth=max_depth).parse(filename, source)


__all__ = ["Parser", "TokenBuffer", "expects_end", "parse"]
