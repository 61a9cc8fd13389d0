# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the SpecML CLI entry point."""

import json
import sys
from pathlib import Path

import pytest

from specml.cli.main import main
from specml.workspace.config import CONFIG_FILE_NAME, load_workspace_config

_DATA_DIR = Path(__file__).parent.parent / "data"

# ###############
# Test Helpers
# ###############


def _run(monkeypatch: pytest.MonkeyPatch, *argv: str) -> int:
    monkeypatch.setattr(sys, "argv", ["specml", *argv])
    with pytest.raises(SystemExit) as exc_info:
        main()
    code = exc_info.value.code
    return code if isinstance(code, int) else 0


def _write(root: Path, rel: str, content: str) -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


_OVERRIDE = "Base { x number }\nDerived { >Base\n  x string }\n"

# ###############
# Public Interface
# ###############


def test_main_no_args_prints_help_and_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    """main() with no subcommand prints help and exits with code 0."""
    assert _run(monkeypatch) == 0


# -------- init tests --------


def test_init_creates_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    assert _run(monkeypatch, "init", str(tmp_path)) == 0
    config_file = tmp_path / CONFIG_FILE_NAME
    assert config_file.exists()
    assert config_file.read_text().startswith("# SpecML configuration\n")
    assert load_workspace_config(config_file).output == "specml-build/ir.json"
    assert "Initialized SpecML project" in capsys.readouterr().out


def test_init_default_directory_uses_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert _run(monkeypatch, "init") == 0
    assert (tmp_path / CONFIG_FILE_NAME).exists()


def test_init_fails_if_config_already_exists(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text("jobs: 2\n")
    assert _run(monkeypatch, "init", str(tmp_path)) == 1
    assert "already exists" in capsys.readouterr().err
    assert (tmp_path / CONFIG_FILE_NAME).read_text() == "jobs: 2\n"


def test_init_fails_if_directory_does_not_exist(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert _run(monkeypatch, "init", str(tmp_path / "nonexistent")) == 1


# -------- check tests --------


def test_check_with_no_spec_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    assert _run(monkeypatch, "check", str(tmp_path)) == 0
    assert "Checked 0 file(s)" in capsys.readouterr().out


def test_check_sample_tree(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    assert _run(monkeypatch, "check", str(_DATA_DIR / "positive" / "order_api"), "--jobs", "4") == 0
    assert "Checked 11 file(s). No issues found." in capsys.readouterr().out


def test_check_reports_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    _write(tmp_path, "person.data.spec", "Person {\n  age number<uppercase>\n}\n")
    assert _run(monkeypatch, "check", str(tmp_path)) == 1
    err = capsys.readouterr().err
    assert "person.data.spec:2:" in err
    assert "error[IncompatibleConstraintError]" in err
    assert "Compilation failed with 1 error(s)." in err


def test_check_fails_if_directory_does_not_exist(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    assert _run(monkeypatch, "check", str(tmp_path / "missing")) == 1
    assert "does not exist" in capsys.readouterr().err


def test_check_reports_invalid_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text("jobs: 0\n")
    assert _run(monkeypatch, "check", str(tmp_path)) == 1
    assert "'jobs' must be a positive integer" in capsys.readouterr().err


def test_check_rejects_non_positive_jobs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert _run(monkeypatch, "check", str(tmp_path), "--jobs", "0") == 1


def test_check_prints_warnings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    _write(tmp_path, "a.spec", _OVERRIDE)
    assert _run(monkeypatch, "check", str(tmp_path)) == 0
    assert "warning[TypeChangingOverride]" in capsys.readouterr().out


def test_check_warnings_as_errors_flag(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    _write(tmp_path, "a.spec", _OVERRIDE)
    assert _run(monkeypatch, "check", str(tmp_path), "--warnings-as-errors") == 1
    assert "1 warning(s) treated as errors" in capsys.readouterr().err


def test_check_warnings_as_errors_from_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path, "a.spec", _OVERRIDE)
    (tmp_path / CONFIG_FILE_NAME).write_text("warnings-as-errors: true\n")
    assert _run(monkeypatch, "check", str(tmp_path)) == 1


def test_check_json_format(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    _write(tmp_path, "order.data.spec", "Order {\n  id string\n  total#Money\n}\n")
    assert _run(monkeypatch, "check", str(tmp_path), "--format", "json") == 1
    document = json.loads(capsys.readouterr().out)
    (error,) = document["errors"]
    assert error["kind"] == "UnknownReferenceError"
    assert (error["file"], error["line"]) == ("order.data.spec", 3)
    assert document["warnings"] == []


def test_check_verbose_logs_progress(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    _write(tmp_path, "a.spec", "A { x string }\n")
    with caplog.at_level("DEBUG", logger="specml"):
        assert _run(monkeypatch, "check", str(tmp_path), "-v") == 0
    assert "Discovered 1 spec file(s)" in caplog.text


# -------- compile tests --------


def test_compile_writes_ir_to_default_output(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    _write(tmp_path, "money.data.spec", "Money { amount number<min:0> }\n")
    assert _run(monkeypatch, "compile", str(tmp_path)) == 0
    output = tmp_path / "specml-build" / "ir.json"
    document = json.loads(output.read_text())
    assert list(document["entities"]) == ["Money"]
    assert "Compiled 1 file(s)" in capsys.readouterr().out


def test_compile_output_option(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path, "src/money.data.spec", "Money { amount number }\n")
    target = tmp_path / "out" / "api.json"
    assert _run(monkeypatch, "compile", str(tmp_path / "src"), "-o", str(target)) == 0
    assert json.loads(target.read_text())["sources"] == {"Money": "money.data.spec"}


def test_compile_output_from_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path, "money.data.spec", "Money { amount number }\n")
    (tmp_path / CONFIG_FILE_NAME).write_text("output: dist/schema.json\n")
    assert _run(monkeypatch, "compile", str(tmp_path)) == 0
    assert (tmp_path / "dist" / "schema.json").exists()


def test_compile_failure_writes_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path, "broken.spec", "Broken {\n")
    assert _run(monkeypatch, "compile", str(tmp_path)) == 1
    assert not (tmp_path / "specml-build").exists()
