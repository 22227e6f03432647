"""
Defines the syntax tree node structure for the rath language.

Classes:
    ASTNode:
        Base class of every node. Carries the originating token and a
        class-level `kind` tag that the folder and the debug printer
        dispatch on.

    UnaryOp, BinaryOp, Constant, Variable, Call, Function, Return, Block,
    If, Switch, Case, CaseCondition, Assign:
        One class per node variant.

Ownership:
    A node exclusively owns every child returned by `children()`, and
    `walk()` visits a tree following ownership only, so every node is seen
    exactly once.

    The one exception is the comparison a `switch` synthesizes for an
    implicit `case` clause: `BinaryOp("==", scrutinee, bound_value,
    synthesized=True)`. Its operands are borrowed. The scrutinee belongs to
    the `Switch`, the bound value to the `CaseCondition`, and the
    synthesized node reports no children of its own.

Equality is structural: kind and fields are compared, tokens are not.

Example:
    node = BinaryOp("+", Constant.from_int(1), Constant.from_int(2))
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from rath.rath_constants import (
    CONST_FLOAT,
    CONST_IDENT,
    CONST_INT,
    CONST_NULL,
    CONST_STRING,
    CONST_THIS,
    FLAG_CONST,
    FLAG_PACKED,
    FLAG_REF,
)
from rath.rath_lexer import Token


class ASTNode:
    """
    Base class for rath syntax tree nodes.

    Subclasses list their data attributes in `fields`; those drive
    `__eq__`, `__repr__` and `to_dict`.

    Attributes:
        kind (str): Variant tag (e.g. "binop", "switch").
        token (Token | None): Token the node originates from.
    """

    kind = "node"
    fields: tuple[str, ...] = ()

    def __init__(self, token: Token | None = None) -> None:
        self.token = token

    @property
    def line(self) -> int:
        return self.token.line if self.token is not None else 0

    @property
    def offset(self) -> int:
        return self.token.offset if self.token is not None else 0

    def children(self) -> list[ASTNode]:
        """Returns the nodes this node owns, in source order."""
        return []

    def walk(self) -> Iterator[ASTNode]:
        """Yields this node and every owned descendant, pre-order."""
        stack: list[ASTNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))

    def __repr__(self) -> str:
        parts = [f"{name}={getattr(self, name)!r}" for name in self.fields]
        return f"{type(self).__name__}({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ASTNode) or self.kind != other.kind:
            return False
        return all(
            getattr(self, name) == getattr(other, name, None) for name in self.fields
        )

    __hash__ = object.__hash__

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind, "line": self.line}
        for name in self.fields:
            data[name] = _serialize(getattr(self, name))
        return data


def _serialize(value: Any) -> Any:
    if isinstance(value, ASTNode):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    return value


def _present(*nodes: ASTNode | None) -> list[ASTNode]:
    return [n for n in nodes if n is not None]


class UnaryOp(ASTNode):
    kind = "unop"
    fields = ("op", "operand")

    def __init__(
        self, op: str, operand: ASTNode | None, token: Token | None = None
    ) -> None:
        super().__init__(token)
        self.op = op
        self.operand = operand

    def children(self) -> list[ASTNode]:
        return _present(self.operand)


class BinaryOp(ASTNode):
    """A binary operator application.

    When `synthesized` is set the node was built by the parser for an
    implicit `case` match and only borrows `left` (the switch scrutinee)
    and `right` (the case's bound value).
    """

    kind = "binop"
    fields = ("op", "left", "right")

    def __init__(
        self,
        op: str,
        left: ASTNode | None,
        right: ASTNode | None,
        token: Token | None = None,
        synthesized: bool = False,
    ) -> None:
        super().__init__(token)
        self.op = op
        self.left = left
        self.right = right
        self.synthesized = synthesized

    def children(self) -> list[ASTNode]:
        if self.synthesized:
            return []
        return _present(self.left, self.right)

    def to_dict(self) -> dict[str, Any]:
        if self.synthesized:
            return {
                "kind": self.kind,
                "line": self.line,
                "op": self.op,
                "left": {"ref": self.left.kind if self.left else None},
                "right": {"ref": self.right.kind if self.right else None},
            }

        spine = left_spine(self)
        data = _serialize(spine[-1].left)
        for node in reversed(spine):
            data = {
                "kind": node.kind,
                "line": node.line,
                "op": node.op,
                "left": data,
                "right": _serialize(node.right),
            }
        result: dict[str, Any] = data
        return result


def left_spine(node: BinaryOp) -> list[BinaryOp]:
    """Returns `node` and the owned binary operators down its left operands.

    Left-associative chains such as `a + b + c + d` nest to the left, one
    level per operator; callers walk the returned list instead of recursing.
    """
    spine = [node]
    while isinstance(spine[-1].left, BinaryOp) and not spine[-1].left.synthesized:
        spine.append(spine[-1].left)
    return spine


class Constant(ASTNode):
    """A literal: int, float, string, identifier, null or this."""

    kind = "const"
    fields = ("const_type", "value")

    def __init__(self, const_type: str, value: Any, token: Token | None = None):
        super().__init__(token)
        self.const_type = const_type
        self.value = value

    @classmethod
    def from_int(cls, value: int, token: Token | None = None) -> Constant:
        return cls(CONST_INT, value, token)

    @classmethod
    def from_float(cls, value: float, token: Token | None = None) -> Constant:
        return cls(CONST_FLOAT, value, token)

    @classmethod
    def from_string(cls, value: str, token: Token | None = None) -> Constant:
        return cls(CONST_STRING, value, token)

    @classmethod
    def null(cls, token: Token | None = None) -> Constant:
        return cls(CONST_NULL, None, token)

    @classmethod
    def this(cls, token: Token | None = None) -> Constant:
        return cls(CONST_THIS, None, token)

    @property
    def is_number(self) -> bool:
        return self.const_type in (CONST_INT, CONST_FLOAT)


class Variable(Constant):
    """An identifier reference, declared variable or function parameter."""

    fields = ("const_type", "name", "flags")

    def __init__(self, name: str, flags: int = 0, token: Token | None = None):
        super().__init__(CONST_IDENT, name, token)
        self.name = name
        self.flags = flags

    @property
    def is_ref(self) -> bool:
        return bool(self.flags & FLAG_REF)

    @property
    def is_const(self) -> bool:
        return bool(self.flags & FLAG_CONST)

    @property
    def is_packed(self) -> bool:
        return bool(self.flags & FLAG_PACKED)


class Call(ASTNode):
    kind = "call"
    fields = ("name", "args")

    def __init__(
        self,
        name: str,
        args: list[ASTNode] | None = None,
        token: Token | None = None,
    ) -> None:
        super().__init__(token)
        self.name = name
        self.args: list[ASTNode] = args or []

    def children(self) -> list[ASTNode]:
        return list(self.args)


class Function(ASTNode):
    kind = "function"
    fields = ("name", "params", "body")

    def __init__(
        self,
        name: str = "",
        params: list[Variable] | None = None,
        body: ASTNode | None = None,
        token: Token | None = None,
    ) -> None:
        super().__init__(token)
        self.name = name
        self.params: list[Variable] = params or []
        self.body = body

    def children(self) -> list[ASTNode]:
        return [*self.params, *_present(self.body)]


class Return(ASTNode):
    kind = "return"
    fields = ("value",)

    def __init__(self, value: ASTNode | None = None, token: Token | None = None):
        super().__init__(token)
        self.value = value

    def children(self) -> list[ASTNode]:
        return _present(self.value)


class Block(ASTNode):
    kind = "block"
    fields = ("body",)

    def __init__(
        self, body: list[ASTNode] | None = None, token: Token | None = None
    ) -> None:
        super().__init__(token)
        self.body: list[ASTNode] = body or []

    def children(self) -> list[ASTNode]:
        return list(self.body)


class If(ASTNode):
    kind = "if"
    fields = ("condition", "body", "else_body")

    def __init__(
        self,
        condition: ASTNode | None,
        body: ASTNode | None,
        else_body: ASTNode | None = None,
        token: Token | None = None,
    ) -> None:
        super().__init__(token)
        self.condition = condition
        self.body = body
        self.else_body = else_body

    def children(self) -> list[ASTNode]:
        return _present(self.condition, self.body, self.else_body)


class CaseCondition(ASTNode):
    """The match condition of one `case` arm.

    Attributes:
        values (list[ASTNode]): Bound values of every clause in the arm, owned.
        value (ASTNode | None): The last bound value seen.
        condition (ASTNode | None): Owned condition tree. Implicit clauses
            appear in it as synthesized `==` nodes; several clauses are
            joined with `||`.
        is_direct (bool): True when no clause of the arm used `when`.
    """

    kind = "case_cond"
    fields = ("values", "condition", "is_direct")

    def __init__(
        self,
        values: list[ASTNode] | None = None,
        condition: ASTNode | None = None,
        is_direct: bool = True,
        token: Token | None = None,
    ) -> None:
        super().__init__(token)
        self.values: list[ASTNode] = values or []
        self.condition = condition
        self.is_direct = is_direct

    @property
    def value(self) -> ASTNode | None:
        return self.values[-1] if self.values else None

    def children(self) -> list[ASTNode]:
        return [*self.values, *_present(self.condition)]


class Case(ASTNode):
    kind = "case"
    fields = ("condition", "body")

    def __init__(
        self,
        condition: CaseCondition | None,
        body: ASTNode | None,
        token: Token | None = None,
    ) -> None:
        super().__init__(token)
        self.condition = condition
        self.body = body

    def children(self) -> list[ASTNode]:
        return _present(self.condition, self.body)


class Switch(ASTNode):
    """A switch expression; the single owner of its scrutinee `value`."""

    kind = "switch"
    fields = ("value", "cases")

    def __init__(
        self,
        value: ASTNode | None,
        cases: list[Case] | None = None,
        token: Token | None = None,
    ) -> None:
        super().__init__(token)
        self.value = value
        self.cases: list[Case] = cases or []

    def children(self) -> list[ASTNode]:
        return [*_present(self.value), *self.cases]


class Assign(ASTNode):
    """A `let` declaration binding one or more variables to a value."""

    kind = "assign"
    fields = ("vars", "value")

    def __init__(
        self,
        vars: list[Variable] | None = None,
        value: ASTNode | None = None,
        token: Token | None = None,
    ) -> None:
        super().__init__(token)
        self.vars: list[Variable] = vars or []
        self.value = value

    def children(self) -> list[ASTNode]:
        return [*self.vars, *_present(self.value)]
