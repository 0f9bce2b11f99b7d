# file: scamlookup/cli.py
"""
scamlookup CLI.

Commands:
  - lookup: query every enabled provider for a phone/email/url/ip/domain value
  - providers: list, import, remove and test provider configurations
  - report: export an existing JSON report into CSV (or re-write JSON)
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import click

from scamlookup import __version__
from scamlookup.config import LookupSettings, load_settings
from scamlookup.core.errors import InvalidLookupError
from scamlookup.core.models import LOOKUP_TYPES
from scamlookup.io.report import export_csv, export_json, utc_now_iso
from scamlookup.logging_config import SecretRedactingFilter, configure_logging
from scamlookup.providers import (
    ProviderFileError,
    ProviderRegistry,
    SQLiteProviderRegistry,
    admin_view,
    load_providers_file,
    public_view,
    registry_from_settings,
)
from scamlookup.service import ProviderDiagnostic, open_service

logger = logging.getLogger(__name__)


def _setup(
    config_path: Path | None, providers_path: Path | None = None
) -> tuple[LookupSettings, SecretRedactingFilter]:
    settings = load_settings(yaml_path=config_path)
    if providers_path is not None:
        settings = settings.model_copy(update={"providers_file": providers_path})
    redactor = configure_logging(
        level=settings.log_level,
        json_logging=settings.json_logging,
        marker=settings.redaction_marker,
    )
    return settings, redactor


def _open_registry(settings: LookupSettings, redactor: SecretRedactingFilter) -> ProviderRegistry:
    try:
        registry = registry_from_settings(settings)
    except ProviderFileError as exc:
        raise click.ClickException(str(exc)) from exc
    except Exception as exc:
        raise click.ClickException(f"Cannot open provider registry: {exc}") from exc

    # Register every provider secret with the log redactor before any call is made.
    redactor.add_secrets(c.secret_key for c in registry.list_all() if c.secret_key)
    return registry


async def lookup_async(
    lookup_type: str,
    value: str,
    *,
    settings: LookupSettings,
    registry: ProviderRegistry,
) -> dict[str, Any]:
    async with open_service(settings, registry=registry) as service:
        response = await service.perform_lookup(lookup_type, value)

    report: dict[str, Any] = {
        "metadata": {
            "tool": "scamlookup",
            "version": __version__,
            "generatedAt": utc_now_iso(),
        },
        **response.to_dict(include_raw_body=settings.include_raw_body),
    }
    return report


def _human_text(report: dict[str, Any]) -> str:
    lines: list[str] = []
    lines.append(f"{report.get('lookupType', '')} lookup: {report.get('value', '')}")
    results = report.get("results") or []
    lines.append(f"Providers queried: {len(results)}")
    lines.append("")

    for item in results:
        if not isinstance(item, dict):
            continue
        fields = item.get("normalizedFields") or {}
        if item.get("success"):
            score = fields.get("riskScore")
            score_text = f", risk {score}" if score is not None else ""
            lines.append(
                f"  - {item.get('providerName', '')}: {fields.get('status', 'unknown')}"
                f"{score_text} ({item.get('elapsedMillis', 0)} ms)"
            )
            factors = fields.get("riskFactors")
            if isinstance(factors, list) and factors:
                lines.append(f"    factors: {', '.join(str(f) for f in factors)}")
        else:
            lines.append(
                f"  - {item.get('providerName', '')}: FAILED [{item.get('errorKind', '')}] "
                f"{item.get('errorMessage') or ''}".rstrip()
            )

    return "\n".join(lines) + "\n"


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__)
def main() -> None:
    """Aggregate scam-reputation lookups across configured providers."""


_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config path.",
)


@main.command("lookup")
@click.argument("lookup_type", type=click.Choice(LOOKUP_TYPES, case_sensitive=False))
@click.argument("value", type=str)
@_config_option
@click.option(
    "--providers",
    "providers_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML providers file (overrides settings).",
)
@click.option("--json", "as_json", is_flag=True, help="Print JSON report to stdout (or --output).")
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Write primary output to a file.",
)
@click.option(
    "--csv",
    "csv_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write a per-provider CSV to this path.",
)
def lookup_cmd(
    lookup_type: str,
    value: str,
    config_path: Path | None,
    providers_path: Path | None,
    as_json: bool,
    output_path: Path | None,
    csv_path: Path | None,
) -> None:
    """Look up VALUE with every enabled provider of LOOKUP_TYPE."""

    settings, redactor = _setup(config_path, providers_path)
    registry = _open_registry(settings, redactor)

    try:
        report = asyncio.run(
            lookup_async(lookup_type, value, settings=settings, registry=registry)
        )
    except InvalidLookupError as exc:
        raise click.ClickException(str(exc)) from exc
    except Exception as exc:
        raise click.ClickException(f"{type(exc).__name__}: {exc}") from exc

    if csv_path is not None:
        export_csv(report, csv_path)

    if as_json:
        payload = json.dumps(report, indent=2, sort_keys=True)
        if output_path is not None:
            output_path.write_text(payload, encoding="utf-8")
        else:
            click.echo(payload)
    else:
        text = _human_text(report)
        if output_path is not None:
            output_path.write_text(text, encoding="utf-8")
        click.echo(text, nl=False)


@main.group("providers")
def providers_group() -> None:
    """Manage provider configurations."""


@providers_group.command("list")
@_config_option
@click.option("--public", "public", is_flag=True, help="Show only the user-facing fields.")
def providers_list_cmd(config_path: Path | None, public: bool) -> None:
    """List every provider (secrets masked)."""

    settings, redactor = _setup(config_path)
    registry = _open_registry(settings, redactor)
    view = public_view if public else admin_view
    click.echo(json.dumps([view(c) for c in registry.list_all()], indent=2))


def _sqlite_registry(settings: LookupSettings) -> SQLiteProviderRegistry:
    if settings.providers_db is None:
        raise click.ClickException(
            "This command needs a provider database; set providers_db in the config "
            "or SCAMLOOKUP_PROVIDERS_DB."
        )
    return SQLiteProviderRegistry(settings.providers_db)


@providers_group.command("import")
@click.argument("providers_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_config_option
@click.option("--replace", is_flag=True, help="Overwrite records whose id already exists.")
def providers_import_cmd(providers_file: Path, config_path: Path | None, replace: bool) -> None:
    """Import providers from a YAML file into the provider database."""

    settings, _ = _setup(config_path)
    registry = _sqlite_registry(settings)
    try:
        configs = load_providers_file(providers_file)
    except ProviderFileError as exc:
        raise click.ClickException(str(exc)) from exc

    created = updated = 0
    for config in configs:
        existing = registry.get(config.id)
        if existing is None:
            registry.create(config)
            created += 1
        elif replace:
            try:
                registry.update(config.id, **config.model_dump())
            except ValueError as exc:
                raise click.ClickException(str(exc)) from exc
            updated += 1
        else:
            logger.warning("Provider %s already exists; skipped (use --replace)", config.id)
    click.echo(f"imported {created} provider(s), updated {updated}")


@providers_group.command("remove")
@click.argument("provider_id", type=str)
@_config_option
def providers_remove_cmd(provider_id: str, config_path: Path | None) -> None:
    """Delete a provider from the provider database."""

    settings, _ = _setup(config_path)
    registry = _sqlite_registry(settings)
    if not registry.delete(provider_id):
        raise click.ClickException(f"Unknown provider: {provider_id}")
    click.echo(f"removed {provider_id}")


async def _test_async(
    provider_id: str,
    test_input: str | None,
    *,
    include_disabled: bool,
    settings: LookupSettings,
    registry: ProviderRegistry,
) -> ProviderDiagnostic:
    async with open_service(settings, registry=registry) as service:
        return await service.test_provider(
            provider_id, test_input, include_disabled=include_disabled
        )


@providers_group.command("test")
@click.argument("provider_id", type=str)
@_config_option
@click.option("--input", "test_input", default=None, help="Value to look up (default per type).")
@click.option("--include-disabled", is_flag=True, help="Also run the provider if it is disabled.")
def providers_test_cmd(
    provider_id: str, config_path: Path | None, test_input: str | None, include_disabled: bool
) -> None:
    """Call one provider and print the sanitized request and result."""

    settings, redactor = _setup(config_path)
    registry = _open_registry(settings, redactor)
    try:
        diagnostic = asyncio.run(
            _test_async(
                provider_id,
                test_input,
                include_disabled=include_disabled,
                settings=settings,
                registry=registry,
            )
        )
    except KeyError as exc:
        raise click.ClickException(f"Unknown provider: {provider_id}") from exc
    click.echo(json.dumps(diagnostic.to_dict(), indent=2))


@main.command("report")
@click.argument("input_report", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "csv"], case_sensitive=False),
    default="csv",
)
@click.option("--output", "output_path", type=click.Path(path_type=Path), default=None)
def report_cmd(input_report: Path, fmt: str, output_path: Path | None) -> None:
    """
    Export an existing JSON report into CSV (or re-write JSON).
    """

    try:
        report = json.loads(input_report.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise click.ClickException(f"Cannot read report {input_report}: {exc}") from exc
    if not isinstance(report, dict):
        raise click.ClickException("Input report must be a JSON object.")

    if output_path is None:
        output_path = input_report.with_suffix(f".{fmt.lower()}")

    if fmt.lower() == "json":
        export_json(report, output_path)
    else:
        export_csv(report, output_path)

    click.echo(str(output_path))
