"""
Constant folding for rath syntax trees.

`ConstantFolder` walks a tree bottom-up, dispatching on `node.kind` to a
`fold_<kind>` method. Once the children of a unary or binary operator have
been folded, an operator whose operands are now literal constants is
replaced by a fresh `Constant` that carries the operator's token.

Folding rules:
    - int OP int: `+ - * /` and the integer-only `& ^ | % >> <<`
      (`/` truncates toward zero, `%` keeps the dividend's sign)
    - int/float mixes and float OP float: `+ - * /` only, result is a float;
      an integer-only operator is an error
    - string + string: concatenation; any other arithmetic or integer
      operator on two strings is an error
    - unary `-` on an int or float folds as `0 - value`; any other unary
      operator on a literal is an error
    - identifiers are never folded, and every other combination
      (comparisons, logical operators, `:=`, `.`, null, this, mixed
      string/number) is left as it is

Raises:
    FoldError: When an operator is invalid for its constant operands, on
        division by zero, on a negative or oversized shift count, or when
        the tree is nested deeper than `max_depth`.
"""

from __future__ import annotations

import logging
from typing import Any

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
    left_spine,
)
from rath.rath_constants import (
    CONST_FLOAT,
    CONST_IDENT,
    CONST_INT,
    CONST_STRING,
    DEFAULT_FOLD_DEPTH,
    MAX_SHIFT_COUNT,
    arithmetic_operators,
    integer_operators,
)
from rath.rath_errors import FoldError, RathError, SourceFile

logger = logging.getLogger(__name__)

_NUMBERS = (CONST_INT, CONST_FLOAT)

# wrappers the parser builds without a nesting level of their own
_UNCOUNTED = ("case", "case_cond")


def _truncating_div(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right >= 0) else -quotient


class ConstantFolder:
    """Bottom-up constant folding pass.

    Attributes:
        source (SourceFile): Source used to format error positions.
        max_depth (int): Deepest tree the folder will descend into.
        folds (int): Number of substitutions made so far.
    """

    def __init__(
        self, source: SourceFile | None = None, max_depth: int = DEFAULT_FOLD_DEPTH
    ) -> None:
        self.source = source or SourceFile("")
        self.max_depth = max_depth
        self.folds = 0
        self.depth = 0
        self.scrutinees: list[ASTNode | None] = []

    def error(self, message: str, node: ASTNode) -> RathError:
        return self.source.error(FoldError, message, node.line, node.offset)

    def fold(self, node: ASTNode) -> ASTNode:
        """Folds `node` and its owned descendants; returns the replacement."""
        step = 0 if node.kind in _UNCOUNTED else 1
        self.depth += step
        try:
            if self.depth > self.max_depth:
                raise self.error(f"Expression nesting exceeds {self.max_depth}", node)
            method = getattr(self, f"fold_{node.kind}", None)
            if method is None:
                return node
            result: ASTNode = method(node)
            return result
        finally:
            self.depth -= step

    def fold_optional(self, node: ASTNode | None) -> ASTNode | None:
        return None if node is None else self.fold(node)

    def substitute(self, node: ASTNode, combined: Constant) -> Constant:
        self.folds += 1
        logger.debug(
            "Folded %s(%s) on line %d into %r",
            node.kind,
            getattr(node, "op", ""),
            node.line,
            combined.value,
        )
        return combined

    # Operators

    def fold_unop(self, node: UnaryOp) -> ASTNode:
        node.operand = self.fold_optional(node.operand)
        if isinstance(node.operand, Constant):
            combined = self.resolve_unary(node, node.operand)
            if combined is not None:
                return self.substitute(node, combined)
        return node

    def fold_binop(self, node: BinaryOp) -> ASTNode:
        """Folds a chain of binary operators from its innermost left operand
        outwards; the chain as a whole counts as one level of nesting."""
        if node.synthesized:
            return node

        spine = left_spine(node)
        left = self.fold_optional(spine[-1].left)
        for binop in reversed(spine):
            binop.left = left
            binop.right = self.fold_optional(binop.right)
            left = binop
            if isinstance(binop.left, Constant) and isinstance(binop.right, Constant):
                combined = self.resolve_binary(binop, binop.left, binop.right)
                if combined is not None:
                    left = self.substitute(binop, combined)
        assert left is not None  # for mypy
        return left

    def resolve_unary(self, node: UnaryOp, value: Constant) -> Constant | None:
        if value.const_type == CONST_IDENT:
            return None
        if value.const_type == CONST_INT:
            return Constant.from_int(
                self.combine_arithmetic(node, node.op, 0, value.value), node.token
            )
        if value.const_type == CONST_FLOAT:
            return Constant.from_float(
                self.combine_arithmetic(node, node.op, 0.0, value.value), node.token
            )
        raise self.error(
            f"Invalid unary operator {node.op} on constant expression", node
        )

    def resolve_binary(
        self, node: BinaryOp, left: Constant, right: Constant
    ) -> Constant | None:
        op = node.op
        types = (left.const_type, right.const_type)

        if CONST_IDENT in types:
            return None

        if types == (CONST_INT, CONST_INT):
            if op in arithmetic_operators or op in integer_operators:
                return Constant.from_int(
                    self.combine_int(node, left.value, right.value), node.token
                )
            return None

        if types[0] in _NUMBERS and types[1] in _NUMBERS:
            if op in arithmetic_operators:
                value = self.combine_arithmetic(node, op, left.value, right.value)
                return Constant.from_float(float(value), node.token)
            if op in integer_operators:
                raise self.invalid_operator(node)
            return None

        if types == (CONST_STRING, CONST_STRING):
            if op == "+":
                return Constant.from_string(left.value + right.value, node.token)
            if op in arithmetic_operators or op in integer_operators:
                raise self.invalid_operator(node)
            return None

        return None

    def invalid_operator(self, node: UnaryOp | BinaryOp) -> RathError:
        return self.error(f"Invalid operator {node.op} on constant expressions", node)

    def combine_arithmetic(
        self, node: UnaryOp | BinaryOp, op: str, left: Any, right: Any
    ) -> Any:
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            if right == 0:
                raise self.error("Division by zero in constant expression", node)
            if isinstance(left, int) and isinstance(right, int):
                return _truncating_div(left, right)
            return left / right
        raise self.invalid_operator(node)

    def combine_int(self, node: BinaryOp, left: int, right: int) -> int:
        op = node.op
        if op in arithmetic_operators:
            result: int = self.combine_arithmetic(node, op, left, right)
            return result
        if op == "&":
            return left & right
        if op == "^":
            return left ^ right
        if op == "|":
            return left | right
        if op == "%":
            if right == 0:
                raise self.error("Division by zero in constant expression", node)
            return left - right * _truncating_div(left, right)
        if right < 0:
            raise self.error("Negative shift count in constant expression", node)
        if right > MAX_SHIFT_COUNT:
            raise self.error(
                f"Shift count {right} exceeds {MAX_SHIFT_COUNT} in constant expression",
                node,
            )
        if op == ">>":
            return left >> right
        return left << right

    # Containers

    def fold_return(self, node: Return) -> ASTNode:
        node.value = self.fold_optional(node.value)
        return node

    def fold_function(self, node: Function) -> ASTNode:
        node.body = self.fold_optional(node.body)
        return node

    def fold_assign(self, node: Assign) -> ASTNode:
        node.value = self.fold_optional(node.value)
        return node

    def fold_call(self, node: Call) -> ASTNode:
        node.args = [self.fold(arg) for arg in node.args]
        return node

    def fold_block(self, node: Block) -> ASTNode:
        node.body = [self.fold(expr) for expr in node.body]
        return node

    def fold_if(self, node: If) -> ASTNode:
        node.condition = self.fold_optional(node.condition)
        node.body = self.fold_optional(node.body)
        node.else_body = self.fold_optional(node.else_body)
        return node

    def fold_switch(self, node: Switch) -> ASTNode:
        node.value = self.fold_optional(node.value)
        self.scrutinees.append(node.value)
        try:
            for case in node.cases:
                self.fold(case)
        finally:
            self.scrutinees.pop()
        return node

    def fold_case(self, node: Case) -> ASTNode:
        if node.condition is not None:
            self.fold(node.condition)
        node.body = self.fold_optional(node.body)
        return node

    def fold_case_cond(self, node: CaseCondition) -> ASTNode:
        previous = list(node.values)
        node.values = [self.fold(value) for value in node.values]
        replaced = {id(old): new for old, new in zip(previous, node.values)}
        scrutinee = self.scrutinees[-1] if self.scrutinees else None
        node.condition = self.fold_match(node.condition, scrutinee, replaced)
        return node

    def fold_match(
        self,
        cond: ASTNode | None,
        scrutinee: ASTNode | None,
        replaced: dict[int, ASTNode],
    ) -> ASTNode | None:
        """Folds a case condition, re-pointing synthesized comparisons at the
        folded scrutinee and bound values."""
        if not isinstance(cond, BinaryOp):
            return self.fold_optional(cond)
        if cond.synthesized:
            if scrutinee is not None:
                cond.left = scrutinee
            if cond.right is not None:
                cond.right = replaced.get(id(cond.right), cond.right)
            return cond
        if cond.op == "||":
            cond.left = self.fold_match(cond.left, scrutinee, replaced)
            cond.right = self.fold_match(cond.right, scrutinee, replaced)
            return cond
        return self.fold(cond)


def fold(
    tree: ASTNode | None,
    source: SourceFile | None = None,
    max_depth: int = DEFAULT_FOLD_DEPTH,
) -> ASTNode | None:
    """Constant-fold `tree`, returning the (possibly replaced) root."""
    return ConstantFolder(source, max_depth=max_depth).fold_optional(tree)


__all__ = ["ConstantFolder", "fold"]
