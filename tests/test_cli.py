from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from null_subjects import Sloppy, Token
from nullcheck import __version__, cli
from nullcheck.config import ScanSettings
from nullcheck.exceptions import ConfigurationError, InvocationMarshalError, MissingDefaultError
from nullcheck.members import describe_method


def _invoke(*args: str):
    runner = CliRunner()
    return runner.invoke(cli.app, list(args))


def test_version() -> None:
    result = _invoke("version")
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_failures_exit_one(tmp_path: Path) -> None:
    result = _invoke("scan", "null_functions", "--root", str(tmp_path), "--quiet")
    assert result.exit_code == 1
    assert "FAIL concat(str, str) [no_exception_thrown]" in result.stdout
    assert "null_functions: 2 failure(s), 0 error(s)" in result.stdout


def test_missing_defaults_are_errors(tmp_path: Path) -> None:
    result = _invoke("scan", "null_subjects:Guarded", "--root", str(tmp_path), "--quiet")
    assert result.exit_code == 2
    assert "ERROR Guarded [missing_default]" in result.stdout


def test_config_file_supplies_defaults(tmp_path: Path) -> None:
    config = tmp_path / "nullcheck.toml"
    config.write_text('[scan.defaults]\n"builtins:str" = "builtins:str"\n', encoding="utf-8")
    report_path = tmp_path / "report.json"
    result = _invoke(
        "scan",
        "null_subjects:Guarded",
        "--root",
        str(tmp_path),
        "--json",
        str(report_path),
        "--quiet",
    )
    assert result.exit_code == 0, result.stdout
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["scans"] == ["constructors", "static_methods"]
    assert report["counts"]["constructors"] == 1
    assert report["counts"]["static_methods"] == 2
    assert report["failures"] == []


def test_instance_scan(tmp_path: Path) -> None:
    result = _invoke(
        "scan",
        "null_subjects:Sloppy",
        "--root",
        str(tmp_path),
        "--no-constructors",
        "--no-static-methods",
        "--instance",
        "null_subjects:make_sloppy",
        "--quiet",
    )
    assert result.exit_code == 1
    assert "FAIL shout(str) [wrong_exception_kind]" in result.stdout
    assert "null_subjects:Sloppy: 4 failure(s), 0 error(s)" in result.stdout


def test_bad_target_is_a_configuration_error(tmp_path: Path) -> None:
    result = _invoke("scan", "no_such_module_here", "--root", str(tmp_path), "--quiet")
    assert result.exit_code == 2


def test_bad_visibility_is_a_configuration_error(tmp_path: Path) -> None:
    result = _invoke("scan", "null_functions", "--root", str(tmp_path), "--visibility", "friends")
    assert result.exit_code == 2


def test_run_scan_collects_instance_failures() -> None:
    report = cli.run_scan(
        "null_subjects:Sloppy",
        ScanSettings(constructors=False, static_methods=False),
        instance_factory="null_subjects:make_sloppy",
    )
    assert report.scans == ["instance_methods"]
    assert report.counts.instance_methods == 4
    assert len(report.failures) == 4
    assert report.exit_code == 1


def test_error_outcomes_name_the_error_kind() -> None:
    member = describe_method(Sloppy, "store")
    labels = [
        cli._error_dto(member, error).outcome
        for error in (
            MissingDefaultError(Token, member="store(str)"),
            InvocationMarshalError("cannot call", member="store(str)"),
            ConfigurationError("not a constructor"),
        )
    ]
    assert labels == ["missing_default", "unexpected_invocation_error", "configuration_error"]
