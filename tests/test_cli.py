import json
import subprocess
import sys
from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from rath import rath_cli


def test_run_rath_string_input_prints_dump(capsys: pytest.CaptureFixture[str]) -> None:
    assert rath_cli.run_rath("hi(5, 6);", is_string=True) == 0
    assert capsys.readouterr().out.strip() == "[Call hi args={[Int 5], [Int 6]}]"


def test_run_rath_folds_by_default(capsys: pytest.CaptureFixture[str]) -> None:
    rath_cli.run_rath("2 + 3 * 4", is_string=True)
    assert capsys.readouterr().out.strip() == "[Int 14]"


def test_run_rath_no_fold(capsys: pytest.CaptureFixture[str]) -> None:
    rath_cli.run_rath("2 + 3", is_string=True, no_fold=True)
    assert capsys.readouterr().out.strip() == "[Binop(+) left=[Int 2] right=[Int 3]]"


def test_run_rath_json(capsys: pytest.CaptureFixture[str]) -> None:
    rath_cli.run_rath("let x = 2 + 3", is_string=True, as_json=True)
    data = json.loads(capsys.readouterr().out)
    assert data["kind"] == "assign"
    assert data["value"] == {"kind": "const", "line": 1, "const_type": "int", "value": 5}


def test_run_rath_json_empty_source(capsys: pytest.CaptureFixture[str]) -> None:
    rath_cli.run_rath("", is_string=True, as_json=True)
    assert capsys.readouterr().out.strip() == "null"


def test_run_rath_empty_source_prints_nothing(capsys: pytest.CaptureFixture[str]) -> None:
    assert rath_cli.run_rath("\n", is_string=True) == 0
    assert capsys.readouterr().out == ""


def test_run_rath_tokens(capsys: pytest.CaptureFixture[str]) -> None:
    assert rath_cli.run_rath("let x\n= 1", is_string=True, tokens=True) == 0
    assert capsys.readouterr().out.splitlines() == [
        "1:0 KEYWORD 'let'",
        "1:4 IDENT 'x'",
        "1:5 NEWLINE '\\n'",
        "2:6 OPERATOR '='",
        "2:8 NUMBER '1'",
        "2:9 EOF ''",
    ]


def test_run_rath_reports_errors(capsys: pytest.CaptureFixture[str]) -> None:
    assert rath_cli.run_rath("x = 5", is_string=True) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("Error in <string>:1:\nx = 5\n  > ")


def test_run_rath_reports_lex_errors_in_token_mode(capsys: pytest.CaptureFixture[str]) -> None:
    assert rath_cli.run_rath("1.2.3", is_string=True, tokens=True) == 1
    assert "Invalid float literal" in capsys.readouterr().err


def test_run_rath_max_depth(capsys: pytest.CaptureFixture[str]) -> None:
    assert rath_cli.run_rath("((1))", is_string=True, max_depth=2) == 1
    assert "Nesting depth exceeds 2" in capsys.readouterr().err


def test_run_rath_reads_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "prog.rath"
    path.write_text("let x = 1\nlet y = x + 1\n", encoding="utf-8")
    assert rath_cli.run_rath(str(path)) == 0
    assert capsys.readouterr().out.strip() == (
        "[Block body={[Assign vars={[Ident x]} value=[Int 1]],"
        " [Assign vars={[Ident y]} value=[Binop(+) left=[Ident x] right=[Int 1]]]}]"
    )


def test_run_rath_file_errors_name_the_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "bad.rath"
    path.write_text("let = 1", encoding="utf-8")
    assert rath_cli.run_rath(str(path)) == 1
    assert f"Error in {path}:1:" in capsys.readouterr().err


def test_run_rath_rejects_other_extensions() -> None:
    with pytest.raises(ValueError, match="Only .rath files are supported."):
        rath_cli.run_rath("program.txt")


def test_main_string_flag(capsys: pytest.CaptureFixture[str]) -> None:
    assert rath_cli.main(["-s", "1 + 1"]) == 0
    assert capsys.readouterr().out.strip() == "[Int 2]"


def test_main_flags_are_forwarded(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_run(**kwargs: object) -> int:
        calls.append(kwargs)
        return 0

    monkeypatch.setattr(rath_cli, "run_rath", fake_run)
    rath_cli.main(["--string", "x", "--tokens", "--no-fold", "--json", "--max-depth", "7"])
    assert calls == [
        {
            "source": "x",
            "is_string": True,
            "tokens": True,
            "no_fold": True,
            "as_json": True,
            "max_depth": 7,
        }
    ]


def test_main_error_exit_code(capsys: pytest.CaptureFixture[str]) -> None:
    assert rath_cli.main(["-s", "{ 1"]) == 1
    assert "Expected '}', got end of input" in capsys.readouterr().err


def test_main_requires_source() -> None:
    with pytest.raises(SystemExit) as e:
        rath_cli.main([])
    assert e.value.code == 2


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])  # type: ignore[misc]
@given(st.integers(0, 10**6), st.integers(0, 10**6))  # type: ignore[misc]
def test_cli_folds_sums(capsys: pytest.CaptureFixture[str], a: int, b: int) -> None:
    rath_cli.run_rath(f"{a} + {b}", is_string=True)
    assert capsys.readouterr().out.strip() == f"[Int {a + b}]"


def test_module_entry_point() -> None:
    result = subprocess.run(
        [sys.executable, "-m", "rath.rath_cli", "-s", "hi(1)"],
        capture_output=True,
        text=True,
        check=False,
        env=None,
        cwd=Path(__file__).resolve().parents[1] / "src",
    )
    assert result.returncode == 0
    assert result.stdout.strip() == "[Call hi args={[Int 1]}]"


def test_run_rath_prints_long_unfolded_chain(capsys: pytest.CaptureFixture[str]) -> None:
    assert rath_cli.run_rath(" + ".join(["x"] * 1200), is_string=True, no_fold=True) == 0
    assert capsys.readouterr().out.count("[Binop(+)") == 1199
