from __future__ import annotations

import json
import logging
import pathlib
from typing import List, Optional

import typer

from guestkit.catalog import load_catalog
from guestkit.config import get_settings
from guestkit.errors import GuestError
from guestkit.guest import Guest
from guestkit.machine import StaticMachine

app = typer.Typer(no_args_is_help=True, help="Guest OS detection and capability dispatch")

CatalogOption = typer.Option(
    None,
    "--catalog",
    "-c",
    help="Guest catalog YAML (defaults to GUESTKIT_CATALOG_PATH).",
)
MachineOption = typer.Option(
    None,
    "--machine",
    "-m",
    help="Machine description YAML with config and facts.",
)
GuestOption = typer.Option(
    None,
    "--guest",
    "-g",
    help="Explicit guest identifier, skipping autodetection.",
)


@app.callback()
def main() -> None:
    """Configure logging for every command."""
    logging.basicConfig(level=get_settings().LOG_LEVEL)


def _detected_guest(
    catalog: Optional[pathlib.Path],
    machine_path: Optional[pathlib.Path],
    guest: Optional[str],
) -> Guest:
    settings = get_settings()
    if catalog is None:
        if not settings.CATALOG_PATH:
            typer.echo("Error: no catalog given and GUESTKIT_CATALOG_PATH is not set", err=True)
            raise typer.Exit(1)
        catalog = pathlib.Path(settings.CATALOG_PATH)

    try:
        machine = StaticMachine.from_yaml(machine_path) if machine_path else StaticMachine()
        explicit = guest or machine.config.guest or settings.GUEST
        if explicit:
            machine.config.guest = explicit

        registries = load_catalog(catalog)
        resolver = Guest(machine, registries.guests, registries.capabilities)
        resolver.detect()
    except (FileNotFoundError, ValueError, GuestError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    return resolver


@app.command("detect")
def detect(
    catalog: Optional[pathlib.Path] = CatalogOption,
    machine: Optional[pathlib.Path] = MachineOption,
    guest: Optional[str] = GuestOption,
) -> None:
    """Print the guest detected for a machine."""
    resolver = _detected_guest(catalog, machine, guest)
    typer.echo(resolver.name)


@app.command("chain")
def chain(
    catalog: Optional[pathlib.Path] = CatalogOption,
    machine: Optional[pathlib.Path] = MachineOption,
    guest: Optional[str] = GuestOption,
) -> None:
    """Print the capability lookup chain, most specific guest first."""
    resolver = _detected_guest(catalog, machine, guest)
    for link in resolver.chain:
        typer.echo(link.name)


@app.command("caps")
def caps(
    catalog: Optional[pathlib.Path] = CatalogOption,
    machine: Optional[pathlib.Path] = MachineOption,
    guest: Optional[str] = GuestOption,
) -> None:
    """List available capabilities and the guest serving each."""
    resolver = _detected_guest(catalog, machine, guest)
    for cap_name, serving in sorted(resolver.capabilities().items()):
        typer.echo(f"{cap_name}\t{serving}")


@app.command("run")
def run(
    cap_name: str = typer.Argument(..., help="Capability name (e.g., 'halt')"),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments passed after the machine"),
    catalog: Optional[pathlib.Path] = CatalogOption,
    machine: Optional[pathlib.Path] = MachineOption,
    guest: Optional[str] = GuestOption,
) -> None:
    """Execute a capability and print its result as JSON."""
    resolver = _detected_guest(catalog, machine, guest)
    try:
        result = resolver.capability(cap_name, *(args or []))
    except GuestError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(result, ensure_ascii=False, default=str))


if __name__ == "__main__":
    app()
