"""Command-line interface for the ACR publisher.

Provides commands for:
- publish: Tag and push the source image to ACR
- validate: Check a configuration file and list every problem
- info: Show plugin metadata and tool availability
"""

import json
import signal
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from acr_publish import __version__
from acr_publish.config.loader import load_config_file, validate_config
from acr_publish.config.models import ReleaseContext
from acr_publish.config.settings import Settings
from acr_publish.exceptions import AcrPublishError, ConfigurationError, FieldError
from acr_publish.plugin import ACRPlugin, ExecuteRequest
from acr_publish.utils.cancel import CancelScope
from acr_publish.utils.shell import is_command_available

app = typer.Typer(
    name="acr-publish",
    help="Push container images to Azure Container Registry",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"acr-publish version {__version__}")
        raise typer.Exit()


def display_field_errors(errors: list[FieldError], title: str = "Configuration Errors") -> None:
    """Display configuration errors in a table.

    Args:
        errors: Field errors to show
        title: Table title
    """
    table = Table(title=title)
    table.add_column("Status", style="bold", width=8)
    table.add_column("Field", style="cyan")
    table.add_column("Message")
    for error in errors:
        table.add_row("[red]FAIL[/red]", error.field, error.message)
    console.print(table)


@contextmanager
def cancel_on_signals(scope: CancelScope) -> Iterator[None]:
    """Cancel ``scope`` on SIGINT/SIGTERM for the duration of the block."""

    def handler(signum: int, frame: object) -> None:
        console.print(f"\n[yellow]Received {signal.Signals(signum).name}, cancelling...[/yellow]")
        scope.cancel()

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: B008
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Push container images to Azure Container Registry.

    Tags a local image with every configured tag template and pushes
    the results to ACR after logging in.
    """


@app.command()
def publish(
    config: Path = typer.Option(  # noqa: B008
        Path("acr.yml"),
        "--config",
        "-c",
        help="Path to configuration file (.yml, .yaml or .toml)",
    ),
    release_version: str = typer.Option(  # noqa: B008
        "",
        "--release-version",
        "-r",
        help="Version being released",
    ),
    previous_version: str = typer.Option(  # noqa: B008
        "",
        "--previous-version",
        help="Previously released version",
    ),
    tag_name: str = typer.Option(  # noqa: B008
        "",
        "--tag-name",
        help="Git tag of the release",
    ),
    branch: str = typer.Option(  # noqa: B008
        "",
        "--branch",
        help="Branch the release was cut from",
    ),
    release_type: str = typer.Option(  # noqa: B008
        "",
        "--release-type",
        help="Release type (e.g. stable, prerelease)",
    ),
    dry_run: bool = typer.Option(  # noqa: B008
        False,
        "--dry-run",
        "-n",
        help="Show what would be pushed without running docker or az",
    ),
    timeout: float | None = typer.Option(  # noqa: B008
        None,
        "--timeout",
        help="Overall time limit in seconds",
    ),
    as_json: bool = typer.Option(  # noqa: B008
        False,
        "--json",
        help="Print the output map as JSON",
    ),
    verbose: bool = typer.Option(  # noqa: B008
        False,
        "--verbose",
        "-v",
        help="Print external commands before running them",
    ),
) -> None:
    """Tag and push the source image to ACR.

    Examples:
        acr-publish publish -r 1.2.0 --tag-name v1.2.0
        acr-publish publish -c release.toml -r 1.2.0 --branch main --dry-run
    """
    try:
        raw = load_config_file(config)
        settings = Settings()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None

    if dry_run:
        console.print(Panel("[yellow]DRY RUN MODE[/yellow] - No images will be pushed"))

    release = ReleaseContext(
        version=release_version,
        previous_version=previous_version,
        tag_name=tag_name,
        branch=branch,
        release_type=release_type,
    )
    request = ExecuteRequest(config=raw, context=release, dry_run=dry_run)
    scope = CancelScope.with_timeout(timeout)
    plugin = ACRPlugin(settings=settings, console=console)

    errors = plugin.validate(raw).errors
    if errors:
        display_field_errors(errors)
        raise typer.Exit(code=ConfigurationError.exit_code)

    try:
        with cancel_on_signals(scope):
            config_obj, result = plugin.publish(request, scope=scope, verbose=verbose)
    except AcrPublishError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None

    outputs = result.to_outputs()
    if as_json:
        typer.echo(json.dumps(outputs, indent=2))
        return

    table = Table(title=f"Images for {config_obj.image_path}")
    table.add_column("Tag", style="cyan")
    table.add_column("Reference")
    for tag, ref in zip(result.tags, result.pushed_images, strict=True):
        table.add_row(tag, ref)
    console.print(table)
    verb = "Would push" if result.dry_run else "Pushed"
    console.print(f"\n[green]{verb} {len(result.pushed_images)} image(s) to {result.registry}[/green]")


@app.command()
def validate(
    config: Path = typer.Option(  # noqa: B008
        Path("acr.yml"),
        "--config",
        "-c",
        help="Path to configuration file (.yml, .yaml or .toml)",
    ),
) -> None:
    """Check a configuration file and list every problem found."""
    try:
        raw = load_config_file(config)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None

    errors = validate_config(raw)
    if errors:
        display_field_errors(errors)
        console.print(f"\n[red]{len(errors)} problem(s) found.[/red]")
        raise typer.Exit(code=ConfigurationError.exit_code)

    console.print("[green]Configuration is valid.[/green]")


@app.command()
def info() -> None:
    """Show plugin metadata and whether the external tools are on PATH."""
    settings = Settings()
    plugin_info = ACRPlugin(settings=settings).get_info()

    table = Table(title=f"{plugin_info.name} {plugin_info.version}")
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Description", plugin_info.description)
    table.add_row("Hooks", ", ".join(h.value for h in plugin_info.hooks))
    for label, binary in (("Azure CLI", settings.az_binary), ("Container tool", settings.docker_binary)):
        status = "[green]found[/green]" if is_command_available(binary) else "[red]missing[/red]"
        table.add_row(label, f"{binary} ({status})")
    console.print(table)


if __name__ == "__main__":
    app()
