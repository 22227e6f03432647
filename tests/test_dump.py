import pytest

from rath.rath_ast import ASTNode, Constant
from rath.rath_dump import DebugPrinter, dump
from rath.rath_parser import parse


@pytest.mark.parametrize(  # type: ignore[misc]
    "source, expected",
    [
        ("hi(5, 6);", "[Call hi args={[Int 5], [Int 6]}]"),
        (
            "1 + 2 * 3",
            "[Binop(+) left=[Int 1] right=[Binop(*) left=[Int 2] right=[Int 3]]]",
        ),
        ("-x", "[Unop(-) [Ident x]]"),
        ("1.5", "[Float 1.5]"),
        ('"hi there"', "[String hi there]"),
        ("null", "[Null]"),
        ("this", "[This]"),
        ("return", "[Return null]"),
        ("return 1", "[Return [Int 1]]"),
        ("{ 1; 2 }", "[Block body={[Int 1], [Int 2]}]"),
        ("func f(a) -> a", "[Func f args={[Ident a]} body=[Ident a]]"),
        ("let g = func() -> 1", "[Assign vars={[Ident g]} value=[Func args={} body=[Int 1]]]"),
        (
            "let ref a, ...b = 1.5",
            "[Assign vars={[Ident ref a], [Ident ref ...b]} value=[Float 1.5]]",
        ),
        ("let const c = 0", "[Assign vars={[Ident const c]} value=[Int 0]]"),
        ("if x -> 1", "[If [Ident x] [Int 1] Else null]"),
        ("if (x) then 1 else 2", "[If [Ident x] [Int 1] Else [Int 2]]"),
        (
            "switch x -> { case 1 -> 2 }",
            "[Switch value=[Ident x] cases={[Case [Cond [Binop(==) left=[Ident x]"
            " right=[Int 1]]] body=[Int 2]]}]",
        ),
        (
            "switch x -> { case 1 case 2 -> 3 }",
            "[Switch value=[Ident x] cases={[Case [Cond [Binop(||)"
            " left=[Binop(==) left=[Ident x] right=[Int 1]]"
            " right=[Binop(==) left=[Ident x] right=[Int 2]]]] body=[Int 3]]}]",
        ),
    ],
)
def test_dump_format(source: str, expected: str) -> None:
    assert dump(parse("t.rath", source)) == expected


def test_dump_of_none() -> None:
    assert dump(None) == "null"


def test_float_dump_is_compact() -> None:
    assert dump(Constant.from_float(3.0)) == "[Float 3]"


def test_unknown_node_kind_raises() -> None:
    with pytest.raises(NotImplementedError, match="No dump method for node kind 'node'"):
        DebugPrinter().dump(ASTNode())


def test_unknown_constant_type_raises() -> None:
    with pytest.raises(ValueError, match="Unknown constant type"):
        dump(Constant("bool", True))


def test_long_chain_dumps_without_recursing() -> None:
    tree = parse("t.rath", " + ".join(["x"] * 1200))
    text = dump(tree)
    assert text.startswith("[Binop(+) left=" * 1199 + "[Ident x] right=[Ident x]]")
    assert text.count("[Ident x]") == 1200
    assert text.endswith(" right=[Ident x]]" * 2)


def test_mixed_chain_dump() -> None:
    assert dump(parse("t.rath", "a - b * c + d")) == (
        "[Binop(+) left=[Binop(-) left=[Ident a] right=[Binop(*) left=[Ident b]"
        " right=[Ident c]]] right=[Ident d]]"
    )
