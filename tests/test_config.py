from __future__ import annotations

from pathlib import Path

import pytest

from null_subjects import Sloppy, Token
from nullcheck import CollectingReporter, NullTester, Visibility
from nullcheck.config import (
    ScanSettings,
    load_config,
    load_scan_settings,
    merge_payload,
    scan_defaults,
)
from nullcheck.exceptions import ConfigurationError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "nullcheck.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_missing_or_invalid_config_is_empty(tmp_path: Path) -> None:
    assert load_config(root=tmp_path) == {}
    bad = _write(tmp_path, "[scan\nvisibility = ")
    assert load_config(config_path=bad) == {}
    assert load_scan_settings(root=tmp_path) == ScanSettings()


def test_scan_section_is_parsed(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "\n".join(
            [
                "[scan]",
                'visibility = "protected"',
                'ignore = ["null_subjects:Sloppy.store", "null_subjects:Sloppy.join"]',
                'accept = "builtins:KeyError, builtins:AttributeError"',
                "constructors = false",
                "",
                "[scan.defaults]",
                '"null_subjects:Token" = "null_subjects:Token"',
            ]
        ),
    )
    settings = load_scan_settings(root=tmp_path)
    assert settings.visibility is Visibility.PROTECTED
    assert settings.ignore == (Sloppy.store, Sloppy.join)
    assert settings.ignore_names == ("null_subjects:Sloppy.store", "null_subjects:Sloppy.join")
    assert settings.accept == (KeyError, AttributeError)
    assert settings.constructors is False
    assert settings.static_methods is True
    ((parameter_type, value),) = settings.defaults
    assert parameter_type is Token
    assert isinstance(value, Token)


def test_overrides_win_over_file_values(tmp_path: Path) -> None:
    _write(tmp_path, '[scan]\nvisibility = "package"\nstatic_methods = "no"\n')
    settings = load_scan_settings(
        root=tmp_path,
        overrides={"visibility": "public", "static_methods": None},
    )
    assert settings.visibility is Visibility.PUBLIC
    assert settings.static_methods is False


def test_merge_payload_skips_none() -> None:
    assert merge_payload({"a": None, "b": 2}, {"a": 1, "b": 1}) == {"a": 1, "b": 2}


def test_scan_defaults_ignores_non_table(tmp_path: Path) -> None:
    config = _write(tmp_path, 'scan = "oops"\n')
    assert scan_defaults(config_path=config) == {}


@pytest.mark.parametrize(
    "section",
    [
        {"visibility": "friends"},
        {"accept": ["null_subjects:Sloppy"]},
        {"ignore": ["null_subjects:Nowhere"]},
        {"defaults": "builtins:str"},
        {"defaults": {"builtins:str": 3}},
        {"defaults": {"null_subjects:Token": "null_subjects:Token.__repr__.__name__"}},
    ],
)
def test_invalid_sections_fail_fast(section: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError):
        ScanSettings.from_table(section)


def test_tester_from_settings_applies_everything() -> None:
    settings = ScanSettings.from_table(
        {
            "ignore": ["null_subjects:Sloppy.store", "null_subjects:Sloppy.pad"],
            "accept": ["builtins:KeyError", "builtins:AttributeError"],
            "defaults": {"builtins:str": "builtins:str"},
        }
    )
    reporter = CollectingReporter()
    tester = NullTester.from_settings(settings, reporter=reporter)
    assert tester.registry.get(str) == ""
    tester.test_all_public_instance_methods(Sloppy("s"))
    assert not reporter
