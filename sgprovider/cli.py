"""
sgprovider CLI entry point.
"""
import logging
import sys
from typing import Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sgprovider import __version__, provider
from sgprovider.config import load_settings
from sgprovider.errors import ConfigError
from sgprovider.models.resource import Resource
from sgprovider.parsers import terraform
from sgprovider.reporters import json_reporter

console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _validate_all(resources: List[Resource]) -> Dict[str, List[str]]:
    return {r.qualified_name: provider.validate(r.resource_type, r.attributes) for r in resources}


def _print_validation_table(
    resources: List[Resource], errors: Dict[str, List[str]], no_color: bool
) -> None:
    tbl = Table(title="Validation Summary", show_header=True, header_style="bold")
    tbl.add_column("Resource", width=45)
    tbl.add_column("Status", width=8)
    tbl.add_column("Depends on")
    tbl.add_column("Problems")

    for r in resources:
        problems = errors.get(r.qualified_name, [])
        if problems:
            status = "INVALID" if no_color else "[red]INVALID[/red]"
        else:
            status = "OK" if no_color else "[green]OK[/green]"
        tbl.add_row(
            r.qualified_name,
            status,
            ", ".join(r.relationships),
            "\n".join(problems),
        )

    Console(stderr=True, no_color=no_color).print(tbl)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx, verbose):
    """sgprovider: security group resources for IaC provider plugins."""
    _setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option(
    "--format", "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable rich terminal color output.",
)
def validate(paths: Tuple[str, ...], output_format: str, no_color: bool) -> None:
    """
    Validate security group declarations in Terraform files.

    PATHS can be files or directories; multiple values accepted.
    """
    stderr = Console(stderr=True, no_color=no_color)

    with stderr.status("[bold]Parsing Terraform files…"):
        parsed = terraform.parse_paths(list(paths))

    resources = [r for r in parsed if r.resource_type in provider.RESOURCES]
    if not resources:
        stderr.print("[yellow]No security group resources found in the provided paths.[/yellow]")
        sys.exit(2 if not parsed else 0)

    errors = _validate_all(resources)
    invalid = sum(1 for r in resources if errors[r.qualified_name])
    stderr.print(
        f"Checked [bold]{len(resources)}[/bold] resources, "
        f"[green]{len(resources) - invalid} valid[/green], [red]{invalid} invalid[/red]"
    )

    if output_format.lower() == "json":
        click.echo(json_reporter.build_report(resources, errors, ", ".join(paths)))
    else:
        _print_validation_table(resources, errors, no_color)

    sys.exit(1 if invalid else 0)


@cli.command()
@click.argument(
    "resource_type",
    required=False,
    type=click.Choice(sorted(provider.RESOURCES)),
)
def schema(resource_type: Optional[str]) -> None:
    """Print the declared schema of one or all resource types."""
    names = [resource_type] if resource_type else sorted(provider.RESOURCES)
    out = Console()
    for name in names:
        rt = provider.RESOURCES[name]
        tbl = Table(title=name, show_header=True, header_style="bold")
        tbl.add_column("Attribute", no_wrap=True, min_width=max(len(k) for k in rt.schema))
        tbl.add_column("Type", no_wrap=True)
        tbl.add_column("Flags")
        tbl.add_column("Default")
        tbl.add_column("Conflicts with")
        tbl.add_column("Description")
        for key, f in rt.schema.items():
            tbl.add_row(
                key,
                f.type.value,
                ", ".join(f.flags()),
                "" if f.default is None else str(f.default),
                ", ".join(f.conflicts_with),
                f.description,
            )
        out.print(tbl)


@cli.command("config")
@click.option(
    "--config", "config_path",
    type=click.Path(),
    default=None,
    help="Settings file (default: ./sgprovider.yaml when present).",
)
def show_config(config_path: Optional[str]) -> None:
    """Print the resolved provider settings with the secret masked."""
    try:
        settings = load_settings(config_path)
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(2)

    for key, val in settings.to_dict().items():
        click.echo(f"{key}: {val}")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
