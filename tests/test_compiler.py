import logging

import pytest

from rath.rath_ast import BinaryOp, Constant
from rath.rath_compiler import Compiler
from rath.rath_errors import (
    DeclarationError,
    FoldError,
    LexError,
    ParseError,
    RathError,
    SourceFile,
)


def test_compile_folds(compiler: Compiler) -> None:
    assert compiler.compile("t.rath", "2 + 3 * 4") == Constant.from_int(14)


def test_compile_without_folding(raw_compiler: Compiler) -> None:
    tree = raw_compiler.compile("t.rath", "2 + 3")
    assert isinstance(tree, BinaryOp)


def test_compile_empty_source(compiler: Compiler) -> None:
    assert compiler.compile("t.rath", "") is None


def test_compiler_is_reusable(compiler: Compiler) -> None:
    assert compiler.compile("a.rath", "1 + 1") == Constant.from_int(2)
    with pytest.raises(FoldError) as excinfo:
        compiler.compile("b.rath", "1 / 0")
    assert excinfo.value.filename == "b.rath"
    assert compiler.compile("c.rath", "2 * 2") == Constant.from_int(4)


def test_fold_depth_is_configurable() -> None:
    with pytest.raises(FoldError, match="Expression nesting exceeds 2"):
        Compiler(fold_depth=2).compile("t.rath", "1 + (2 + 3)")


@pytest.mark.parametrize(  # type: ignore[misc]
    "source, error",
    [
        ("1.2.3", LexError),
        ("x = 1", ParseError),
        ("let ...x = 1", DeclarationError),
        ('"a" - "b"', FoldError),
    ],
)
def test_errors_share_one_family(compiler: Compiler, source: str, error: type) -> None:
    with pytest.raises(error) as excinfo:
        compiler.compile("t.rath", source)
    assert isinstance(excinfo.value, RathError)
    assert isinstance(excinfo.value, SyntaxError)


def test_compile_logs_substitutions(
    compiler: Compiler, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG, logger="rath"):
        compiler.compile("t.rath", "1 + 2")
    assert "Constant folding made 1 substitution(s)" in caplog.text


def test_source_line_text() -> None:
    source = SourceFile("first\nsecond\nthird", "s.rath")
    assert source.line_text(0) == "first"
    assert source.line_text(8) == "second"
    assert source.line_text(100) == "third"


def test_error_str() -> None:
    err = RathError("Bad thing", "f.rath", 3, 10, "let x = ?")
    assert str(err) == "Error in f.rath:3:\nlet x = ?\n  > Bad thing"
    assert err.message == "Bad thing"


def test_compile_accepts_long_chains(compiler: Compiler, raw_compiler: Compiler) -> None:
    source = " + ".join(["1"] * 300)
    assert compiler.compile("t.rath", source) == Constant.from_int(300)
    assert isinstance(raw_compiler.compile("t.rath", source), BinaryOp)
