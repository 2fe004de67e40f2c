"""Command-line interface for upgradescope."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from upgradescope import __version__
from upgradescope.analysis.breaking_changes import render_findings_report
from upgradescope.analysis.changelog import format_changelog, render_changelog_digest
from upgradescope.analysis.compatibility import (
    check_project_compatibility,
    lookup_sdk_compatibility,
    render_compatibility_report,
    render_sdk_compatibility,
)
from upgradescope.config import (
    CONFIG_FILENAMES,
    UpgradescopeConfig,
    find_config_file,
    generate_example_config,
    load_config,
)
from upgradescope.core.advisor import UpgradeAdvisor
from upgradescope.utils.logging import configure_logging, get_logger, log_to_file

app = typer.Typer(
    name="upgradescope",
    help="Read the release notes before you upgrade. Changelogs, breaking-change scans and Expo compatibility for npm packages.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    name="config",
    help="Configuration management.",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

console = Console()
stderr_console = Console(stderr=True)
logger = get_logger(__name__)

MARKDOWN_FORMATS = ("markdown", "json")
INFO_FORMATS = ("table", "json")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"upgradescope version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Also write debug logs to this file.",
            dir_okay=False,
        ),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """upgradescope - read the release notes before you upgrade."""
    log_level = "DEBUG" if verbose else "WARNING" if quiet else "INFO"
    configure_logging(level=log_level)
    if log_file:
        log_to_file(str(log_file))

    ctx.obj = {"config_path": config}
    if config:
        logger.debug("Using configuration file: %s", config)


def _handle_cli_error(error: Exception) -> None:
    """Handle exceptions and display user-friendly error messages.

    Args:
        error: The exception to handle.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    from upgradescope.errors import UpgradescopeError

    if isinstance(error, UpgradescopeError):
        stderr_console.print(
            f"[bold red]Error:[/bold red] {error.message}", highlight=False, soft_wrap=True
        )
        if error.hint:
            stderr_console.print(
                f"[yellow]Hint:[/yellow] {error.hint}", highlight=False, soft_wrap=True
            )
    else:
        stderr_console.print(f"[red]Error: {error}[/red]")
        logger.exception("Command failed")

    raise typer.Exit(code=1)


def _load_config(ctx: typer.Context) -> UpgradescopeConfig:
    config_path = (ctx.obj or {}).get("config_path")
    try:
        return load_config(config_path)
    except Exception as e:
        _handle_cli_error(e)
        raise


def _check_format(format: str, allowed: tuple[str, ...]) -> None:
    if format not in allowed:
        stderr_console.print(
            f"[red]Invalid format: {format}. Choose from: {', '.join(allowed)}[/red]"
        )
        raise typer.Exit(code=1)


def _emit(text: str, output: Path | None, status_console: Console, markdown: bool = True) -> None:
    """Write a report to a file, or to stdout."""
    if output:
        output.write_text(text + "\n")
        status_console.print(f"Report written to: {output}")
    elif markdown and console.is_terminal:
        console.print(Markdown(text))
    else:
        print(text)


@app.command()
def changelog(
    ctx: typer.Context,
    package: Annotated[str, typer.Argument(help="npm package name.")],
    from_version: Annotated[str, typer.Argument(help="Currently installed version.")],
    to_version: Annotated[str, typer.Argument(help="Target version.")],
    format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format (markdown, json).",
        ),
    ] = "markdown",
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write report to file.",
        ),
    ] = None,
) -> None:
    """Show the release notes between two versions of a package."""
    _check_format(format, MARKDOWN_FORMATS)
    status_console = stderr_console if format == "json" else console
    advisor = UpgradeAdvisor(_load_config(ctx))

    status_console.print(f"Fetching changelog for {package} ({from_version} -> {to_version})...")

    try:
        result = asyncio.run(advisor.find_upgrade_changelog(package, from_version, to_version))
    except Exception as e:
        _handle_cli_error(e)
        return

    if format == "json":
        _emit(json.dumps(result.model_dump(mode="json"), indent=2), output, status_console, False)
    else:
        _emit(render_changelog_digest(result), output, status_console)


@app.command()
def breaking(
    ctx: typer.Context,
    package: Annotated[str, typer.Argument(help="npm package name.")],
    from_version: Annotated[str, typer.Argument(help="Currently installed version.")],
    to_version: Annotated[str, typer.Argument(help="Target version.")],
    keyword: Annotated[
        list[str] | None,
        typer.Option(
            "--keyword",
            "-k",
            help="Keyword to search for (repeatable). Overrides configured keywords.",
        ),
    ] = None,
    merge_overlapping: Annotated[
        bool,
        typer.Option(
            "--merge-overlapping",
            help="Merge findings whose context windows overlap.",
        ),
    ] = False,
    format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format (markdown, json).",
        ),
    ] = "markdown",
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write report to file.",
        ),
    ] = None,
) -> None:
    """Scan release notes between two versions for breaking changes."""
    _check_format(format, MARKDOWN_FORMATS)
    status_console = stderr_console if format == "json" else console
    advisor = UpgradeAdvisor(_load_config(ctx))

    status_console.print(
        f"Scanning release notes of {package} ({from_version} -> {to_version})..."
    )

    try:
        report = asyncio.run(
            advisor.check_breaking_changes(
                package,
                from_version,
                to_version,
                keywords=keyword or None,
                merge_overlapping=merge_overlapping or None,
            )
        )
    except Exception as e:
        _handle_cli_error(e)
        return

    if format == "json":
        _emit(json.dumps(report.model_dump(mode="json"), indent=2), output, status_console, False)
    else:
        _emit(render_findings_report(report), output, status_console)


@app.command()
def releases(
    ctx: typer.Context,
    owner: Annotated[str, typer.Argument(help="Repository owner.")],
    repo: Annotated[str, typer.Argument(help="Repository name.")],
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            help="Number of releases to show (defaults to github.recent_limit).",
            min=1,
            max=100,
        ),
    ] = None,
) -> None:
    """Show the most recent releases of a GitHub repository."""
    advisor = UpgradeAdvisor(_load_config(ctx))

    try:
        recent = asyncio.run(advisor.recent_releases(owner, repo, limit))
    except Exception as e:
        _handle_cli_error(e)
        return

    if not recent:
        console.print(f"No releases found for {owner}/{repo}.")
        return

    _emit(
        f"**Recent Releases for {owner}/{repo}**:\n\n{format_changelog(recent)}",
        None,
        console,
    )


@app.command()
def info(
    ctx: typer.Context,
    package: Annotated[str, typer.Argument(help="npm package name.")],
    version: Annotated[
        str | None,
        typer.Option(
            "--version",
            help="Package version or dist-tag (defaults to latest).",
        ),
    ] = None,
    format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format (table, json).",
        ),
    ] = "table",
) -> None:
    """Show registry metadata for a package."""
    _check_format(format, INFO_FORMATS)
    advisor = UpgradeAdvisor(_load_config(ctx))

    try:
        package_info = asyncio.run(advisor.package_info(package, version))
    except Exception as e:
        _handle_cli_error(e)
        return

    if format == "json":
        print(json.dumps(package_info.model_dump(mode="json"), indent=2))
        return

    table = Table(title=f"Package: {package_info.name}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for field_name, value in package_info.model_dump().items():
        table.add_row(field_name, str(value) if value is not None else "-")
    console.print(table)


@app.command()
def compat(
    sdk_version: Annotated[str, typer.Argument(help="Expo SDK version, e.g. 50 or 50.0.0.")],
) -> None:
    """Show the package versions an Expo SDK release expects."""
    console.print(
        render_sdk_compatibility(sdk_version, lookup_sdk_compatibility(sdk_version)),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


@app.command("check-project")
def check_project(
    package_json: Annotated[
        Path,
        typer.Argument(
            help="Path to the project's package.json.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = Path("package.json"),
    lockfile: Annotated[
        Path | None,
        typer.Option(
            "--lockfile",
            "-l",
            help="package-lock.json to read installed versions from.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    sdk: Annotated[
        str | None,
        typer.Option(
            "--sdk",
            help="Expo SDK version to check against (inferred from 'expo' when omitted).",
        ),
    ] = None,
) -> None:
    """Check a project's dependencies against the Expo compatibility map."""
    try:
        report = check_project_compatibility(
            package_json.read_text(),
            lockfile.read_text() if lockfile else None,
            sdk,
        )
    except Exception as e:
        _handle_cli_error(e)
        return

    console.print(
        render_compatibility_report(report), markup=False, highlight=False, soft_wrap=True
    )


@config_app.command("init")
def config_init(
    path: Annotated[
        Path,
        typer.Argument(
            help="Directory to create configuration file in.",
        ),
    ] = Path(),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing configuration file.",
        ),
    ] = False,
) -> None:
    """Initialize a new configuration file."""
    config_path = path / CONFIG_FILENAMES[0]

    if config_path.exists() and not force:
        console.print(f"[yellow]Configuration file already exists: {config_path}[/yellow]")
        console.print("Use --force to overwrite.")
        raise typer.Exit(code=1)

    config_path.write_text(generate_example_config())
    console.print(f"Created configuration file: {config_path}")


@config_app.command("validate")
def config_validate(
    config: Annotated[
        Path,
        typer.Argument(
            help="Path to configuration file to validate.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
) -> None:
    """Validate a configuration file."""
    import yaml

    console.print(f"Validating configuration file: {config}...")

    try:
        data = yaml.safe_load(config.read_text())
    except yaml.YAMLError as e:
        console.print(f"[red]YAML parse error: {e}[/red]")
        raise typer.Exit(code=1)

    if not isinstance(data, dict):
        console.print("[red]Validation failed:[/red] expected a mapping at the top level")
        raise typer.Exit(code=1)

    warnings = []
    if "version" not in data:
        warnings.append("Missing 'version' field")
    elif data["version"] != 1:
        warnings.append(f"Unknown version: {data['version']}")

    known = set(UpgradescopeConfig.model_fields)
    for key in data:
        if key not in known:
            warnings.append(f"Unknown section: {key}")

    try:
        UpgradescopeConfig(**data)
    except ValueError as e:
        console.print("[red]Validation failed:[/red]")
        console.print(str(e), markup=False)
        raise typer.Exit(code=1)

    if warnings:
        console.print("[yellow]Warnings:[/yellow]")
        for warning in warnings:
            console.print(f"  [yellow]WARNING:[/yellow] {warning}")

    console.print("[green]Configuration is valid.[/green]")


def _flatten(data: dict[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    items = []
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            items.extend(_flatten(value, full_key))
        elif isinstance(value, list):
            items.append((full_key, ", ".join(str(v) for v in value) or "(empty)"))
        else:
            items.append((full_key, str(value)))
    return items


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
) -> None:
    """Show the effective configuration (file, environment and defaults)."""
    config_path = config or (ctx.obj or {}).get("config_path") or find_config_file()

    if config_path:
        console.print(f"Configuration file: {config_path}\n")
    else:
        console.print("[yellow]No configuration file found; showing defaults.[/yellow]")
        console.print("Run 'upgradescope config init' to create one.\n")

    try:
        effective = load_config(config_path)
    except Exception as e:
        _handle_cli_error(e)
        return

    data = effective.model_dump()
    if data["github"]["token"]:
        data["github"]["token"] = "********"

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in _flatten(data):
        table.add_row(key, value)

    console.print(table)


if __name__ == "__main__":
    app()
