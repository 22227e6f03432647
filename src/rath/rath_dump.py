"""
Bracketed debug representation of rath syntax trees.

The dump is meant for inspection and snapshot tests only; it is not a
pretty-printer and cannot be parsed back.

Example:
    >>> dump(parse("<input>", "hi(5, 6);"))
    '[Call hi args={[Int 5], [Int 6]}]'
"""

from collections.abc import Sequence

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
    left_spine,
)
from rath.rath_constants import (
    CONST_FLOAT,
    CONST_IDENT,
    CONST_INT,
    CONST_NULL,
    CONST_STRING,
    CONST_THIS,
)


class DebugPrinter:
    """Dispatches nodes to `dump_<kind>` methods and joins the results."""

    def dump(self, node: ASTNode | None) -> str:
        if node is None:
            return "null"
        method_name = f"dump_{node.kind}"
        if not hasattr(self, method_name):
            raise NotImplementedError(
                f"No dump method for node kind '{node.kind}' (line {node.line})"
            )
        result: str = getattr(self, method_name)(node)
        return result

    def dump_list(self, nodes: Sequence[ASTNode]) -> str:
        return "{" + ", ".join(self.dump(n) for n in nodes) + "}"

    def dump_const(self, node: Constant) -> str:
        if isinstance(node, Variable):
            prefix = ""
            if node.is_ref:
                prefix += "ref "
            if node.is_const:
                prefix += "const "
            if node.is_packed:
                prefix += "..."
            return f"[Ident {prefix}{node.name}]"
        if node.const_type == CONST_INT:
            return f"[Int {node.value}]"
        if node.const_type == CONST_FLOAT:
            return f"[Float {node.value:g}]"
        if node.const_type == CONST_STRING:
            return f"[String {node.value}]"
        if node.const_type == CONST_IDENT:
            return f"[Ident {node.value}]"
        if node.const_type == CONST_NULL:
            return "[Null]"
        if node.const_type == CONST_THIS:
            return "[This]"
        raise ValueError(f"Unknown constant type: {node.const_type!r}")

    def dump_unop(self, node: UnaryOp) -> str:
        return f"[Unop({node.op}) {self.dump(node.operand)}]"

    def dump_binop(self, node: BinaryOp) -> str:
        spine = left_spine(node)
        text = self.dump(spine[-1].left)
        for binop in reversed(spine):
            text = f"[Binop({binop.op}) left={text} right={self.dump(binop.right)}]"
        return text

    def dump_return(self, node: Return) -> str:
        return f"[Return {self.dump(node.value)}]"

    def dump_call(self, node: Call) -> str:
        name = f" {node.name}" if node.name else ""
        return f"[Call{name} args={self.dump_list(node.args)}]"

    def dump_block(self, node: Block) -> str:
        return f"[Block body={self.dump_list(node.body)}]"

    def dump_function(self, node: Function) -> str:
        name = f" {node.name}" if node.name else ""
        return (
            f"[Func{name} args={self.dump_list(node.params)}"
            f" body={self.dump(node.body)}]"
        )

    def dump_assign(self, node: Assign) -> str:
        return f"[Assign vars={self.dump_list(node.vars)} value={self.dump(node.value)}]"

    def dump_if(self, node: If) -> str:
        return (
            f"[If {self.dump(node.condition)} {self.dump(node.body)}"
            f" Else {self.dump(node.else_body)}]"
        )

    def dump_switch(self, node: Switch) -> str:
        return f"[Switch value={self.dump(node.value)} cases={self.dump_list(node.cases)}]"

    def dump_case(self, node: Case) -> str:
        return f"[Case {self.dump(node.condition)} body={self.dump(node.body)}]"

    def dump_case_cond(self, node: CaseCondition) -> str:
        return f"[Cond {self.dump(node.condition)}]"


def dump(tree: ASTNode | None) -> str:
    """Returns the bracketed debug representation of `tree`."""
    return DebugPrinter().dump(tree)


__all__ = ["DebugPrinter", "dump"]
