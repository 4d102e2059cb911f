from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Optional

import typer

from nullcheck import __version__
from nullcheck.config import ScanSettings, TomlTable, load_scan_settings
from nullcheck.exceptions import ConfigurationError, InvocationMarshalError, MissingDefaultError
from nullcheck.logging import get_logger, setup_logging
from nullcheck.members import MemberDescriptor, MemberKind, resolve_target
from nullcheck.reporting import CollectingReporter, Outcome
from nullcheck.schema import FailureDTO, ScanCountsDTO, ScanReportDTO
from nullcheck.tester import NullTester

log = get_logger(__name__)

app = typer.Typer(add_completion=False)


CONFIGURATION_ERROR = "configuration_error"


def _error_dto(member: MemberDescriptor, exc: Exception) -> FailureDTO:
    if isinstance(exc, MissingDefaultError):
        outcome = Outcome.MISSING_DEFAULT.value
    elif isinstance(exc, InvocationMarshalError):
        outcome = Outcome.UNEXPECTED_INVOCATION_ERROR.value
    else:
        outcome = CONFIGURATION_ERROR
    return FailureDTO(
        member=member.qualified_name,
        outcome=outcome,
        message=str(exc),
        cause=type(exc).__name__,
    )


def _run_members(
    tester: NullTester,
    members: List[MemberDescriptor],
    *,
    receiver: object,
    errors: List[FailureDTO],
) -> int:
    for member in members:
        try:
            if member.kind is MemberKind.CONSTRUCTOR:
                tester.test_constructor(member)
            else:
                tester.test_method(receiver, member)
        except (ConfigurationError, InvocationMarshalError) as exc:
            # one unusable member must not hide the others
            log.warning("could not check {}: {}", member.qualified_name, exc)
            errors.append(_error_dto(member, exc))
    return len(members)


def run_scan(
    target_spec: str,
    settings: ScanSettings,
    *,
    instance_factory: Optional[str] = None,
    resolve: Callable[[str], object] = resolve_target,
) -> ScanReportDTO:
    """Scan ``target_spec`` and collect every failure into a report."""
    target = resolve(target_spec)
    reporter = CollectingReporter()
    tester = NullTester.from_settings(settings, reporter=reporter)
    errors: List[FailureDTO] = []
    counts = ScanCountsDTO()
    scans: List[str] = []
    if settings.constructors and isinstance(target, type):
        scans.append("constructors")
        counts.constructors = _run_members(
            tester,
            tester.constructors_to_scan(target, settings.visibility),
            receiver=None,
            errors=errors,
        )
    if settings.static_methods:
        scans.append("static_methods")
        counts.static_methods = _run_members(
            tester,
            tester.static_methods_to_scan(target, settings.visibility),
            receiver=None,
            errors=errors,
        )
    if instance_factory is not None:
        factory = resolve(instance_factory)
        if not callable(factory):
            raise ConfigurationError(f"{instance_factory!r} is not callable")
        instance = factory()
        scans.append("instance_methods")
        counts.instance_methods = _run_members(
            tester,
            tester.instance_methods_to_scan(type(instance), settings.visibility),
            receiver=instance,
            errors=errors,
        )
    failures = [
        FailureDTO(
            member=failure.member,
            outcome=failure.outcome.value,
            message=failure.message,
            cause=repr(failure.cause) if failure.cause is not None else None,
        )
        for failure in reporter.failures
    ]
    return ScanReportDTO(
        target=target_spec,
        visibility=settings.visibility.value,
        scans=scans,
        counts=counts,
        failures=failures,
        errors=errors,
    )


@app.command()
def scan(
    target: str = typer.Argument(..., help="module or module:Class to check."),
    visibility: Optional[str] = typer.Option(
        None, "--visibility", help="Minimal visibility: public, protected or package."
    ),
    constructors: Optional[bool] = typer.Option(None, "--constructors/--no-constructors"),
    static_methods: Optional[bool] = typer.Option(None, "--static-methods/--no-static-methods"),
    instance: Optional[str] = typer.Option(
        None,
        "--instance",
        help="module:factory returning an instance whose methods are checked.",
    ),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    json_report: Optional[Path] = typer.Option(None, "--json", help="Write the report as JSON."),
    verbose: bool = typer.Option(False, "--verbose"),
    quiet: bool = typer.Option(False, "--quiet"),
) -> None:
    """Check that TARGET's members reject None arguments."""
    setup_logging(verbosity="verbose" if verbose else "quiet" if quiet else "normal")
    root_text = str(root.resolve())
    if root_text not in sys.path:
        sys.path.insert(0, root_text)
    overrides: TomlTable = {
        "visibility": visibility,
        "constructors": constructors,
        "static_methods": static_methods,
    }
    try:
        settings = load_scan_settings(root=root, config_path=config, overrides=overrides)
        report = run_scan(target, settings, instance_factory=instance)
    except ConfigurationError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    for failure in report.failures:
        typer.echo(f"FAIL {failure.member} [{failure.outcome}]: {failure.message}")
    for error in report.errors:
        typer.echo(f"ERROR {error.member} [{error.outcome}]: {error.message}")
    typer.echo(
        f"{report.target}: {len(report.failures)} failure(s), {len(report.errors)} error(s)"
    )
    if json_report is not None:
        json_report.write_text(report.model_dump_json(indent=2) + "\n", encoding="utf-8")
        typer.echo(f"Wrote scan report JSON: {json_report}")
    raise typer.Exit(code=report.exit_code)


@app.command()
def version() -> None:
    """Print the nullcheck version."""
    typer.echo(__version__)


def main() -> None:  # pragma: no cover
    app()
