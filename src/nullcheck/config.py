from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from nullcheck.exceptions import ConfigurationError
from nullcheck.members import resolve_target
from nullcheck.visibility import Visibility

DEFAULT_CONFIG_NAME = "nullcheck.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def scan_defaults(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("scan", {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def _as_bool(value: TomlValue, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return default


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def _resolve_error_class(spec: str) -> type[BaseException]:
    resolved = resolve_target(spec)
    if not (isinstance(resolved, type) and issubclass(resolved, BaseException)):
        raise ConfigurationError(f"{spec!r} is not an exception class")
    return resolved


def _defaults_from_table(value: TomlValue) -> tuple[tuple[object, object], ...]:
    """Resolve a ``[scan.defaults]`` table of ``"module:Type" = "module:factory"``.

    Each factory is called once with no arguments to produce the filler.
    """
    if value is None:
        return ()
    if not isinstance(value, dict):
        raise ConfigurationError("[scan.defaults] must be a table")
    resolved: list[tuple[object, object]] = []
    for type_name, factory_name in value.items():
        if not isinstance(factory_name, str):
            raise ConfigurationError(f"default factory for {type_name!r} must be a string")
        factory = resolve_target(factory_name)
        if not callable(factory):
            raise ConfigurationError(f"{factory_name!r} is not callable")
        resolved.append((resolve_target(type_name), factory()))
    return tuple(resolved)


@dataclass(frozen=True)
class ScanSettings:
    visibility: Visibility = Visibility.PUBLIC
    ignore: tuple[object, ...] = ()
    accept: tuple[type[BaseException], ...] = ()
    defaults: tuple[tuple[object, object], ...] = ()
    constructors: bool = True
    static_methods: bool = True
    ignore_names: tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def from_table(cls, section: TomlTable | None) -> ScanSettings:
        """Build settings from a ``[scan]`` table.

        ``ignore`` and ``accept`` entries are ``module:Qualified.name``
        strings and are imported here, so a typo fails fast.
        """
        if not isinstance(section, dict):
            return cls()
        raw_visibility = section.get("visibility")
        try:
            visibility = (
                Visibility.parse(str(raw_visibility))
                if raw_visibility is not None
                else Visibility.PUBLIC
            )
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        ignore_names = tuple(_normalize_name_list(section.get("ignore")))
        defaults = _defaults_from_table(section.get("defaults"))
        return cls(
            visibility=visibility,
            ignore=tuple(resolve_target(name) for name in ignore_names),
            accept=tuple(_resolve_error_class(name) for name in _normalize_name_list(section.get("accept"))),
            defaults=defaults,
            constructors=_as_bool(section.get("constructors"), True),
            static_methods=_as_bool(section.get("static_methods"), True),
            ignore_names=ignore_names,
        )


def load_scan_settings(
    root: Path | None = None,
    config_path: Path | None = None,
    overrides: TomlTable | None = None,
) -> ScanSettings:
    section = scan_defaults(root=root, config_path=config_path)
    if overrides:
        section = merge_payload(overrides, section)
    return ScanSettings.from_table(section)
