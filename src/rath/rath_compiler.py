"""
Compiler facade chaining the rath frontend stages.

`Compiler.compile()` parses a source unit and, unless folding is disabled,
runs the constant folder over the result using the parser's source for
error positions.

Example:
    >>> Compiler().compile("<input>", "2 + 3 * 4")
    Constant(const_type='int', value=14)
"""

import logging

from rath.rath_ast import ASTNode
from rath.rath_constants import DEFAULT_FOLD_DEPTH, DEFAULT_MAX_DEPTH
from rath.rath_optimize import ConstantFolder
from rath.rath_parser import Parser

logger = logging.getLogger(__name__)


class Compiler:
    """Runs parse and (optionally) fold for one source unit at a time.

    Attributes:
        parser (Parser): The parser, reused across calls.
        fold (bool): Whether to run constant folding after parsing.
        fold_depth (int): Nesting ceiling handed to the folder.
    """

    def __init__(
        self,
        fold: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
        fold_depth: int = DEFAULT_FOLD_DEPTH,
    ) -> None:
        self.parser = Parser(max_depth=max_depth)
        self.fold = fold
        self.fold_depth = fold_depth

    def compile(self, filename: str, code: str) -> ASTNode | None:
        """Parse `code` and fold the resulting tree.

        Raises:
            RathError: The first lexical, syntax, declaration or fold error.
        """
        tree = self.parser.parse(filename, code)
        if tree is None or not self.fold:
            return tree

        folder = ConstantFolder(self.parser.source, max_depth=self.fold_depth)
        tree = folder.fold(tree)
        logger.debug("Constant folding made %d substitution(s)", folder.folds)
        return tree
