"""sky-install CLI — fetch SCAII resources.

Commands:
- get core      clone SCAII and unpack its bundled JS libraries
- get rts       clone Sky-RTS
- get backend   clone an arbitrary backend (URL may carry ``@branch``)

Shared flags: --branch, --save-path, --force, --config, --verbose
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape

from sky_install import constants
from sky_install.config import load_config
from sky_install.errors import AggregateError, SkyInstallError
from sky_install.installer.get import Get
from sky_install.installer.surfaces import parse_git_source
from sky_install.logging import set_verbosity
from sky_install.util.names import NameOrPath

app = typer.Typer(add_completion=False, help="Manages resources related to the SCAII environment")
get_app = typer.Typer(add_completion=False, help="Fetches SCAII-related components from github")
app.add_typer(get_app, name="get")
console = Console()

BranchOpt = typer.Option(None, "--branch", help="Branch to check out after fetching")
SavePathOpt = typer.Option(
    None, "--save-path", "--sp", help="Directory to store the repository under"
)
ForceOpt = typer.Option(False, "--force", "-f", help="Overwrite the target directory if present")
ConfigOpt = typer.Option(None, "--config", help="Path to a sky-install.json config file")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Log progress as JSON lines on stderr")


def _run(build, config_path: str | None, verbose: bool) -> None:
    set_verbosity(verbose)
    try:
        config = load_config(Path(config_path) if config_path else None)
        resource: Get = build(config)
        path = resource.get(constants.SCAII_HOME, config=config, console=console)
    except AggregateError as e:
        rprint(f"[red]Error:[/red] could not execute get subcommand: {len(e)} job(s) failed")
        for i, err in enumerate(e.errors):
            rprint(f"  [red]{escape(f'[{i}]')}[/red] {escape(str(err))}")
        raise typer.Exit(code=constants.GET_FAILURE) from e
    except SkyInstallError as e:
        rprint(f"[red]Error:[/red] could not execute get subcommand: {escape(str(e))}")
        raise typer.Exit(code=constants.GET_FAILURE) from e
    rprint(f"[green]Fetched:[/green] {escape(resource.url)} -> {escape(str(path))}")


@get_app.command()
def core(
    branch: str | None = BranchOpt,
    save_path: str | None = SavePathOpt,
    force: bool = ForceOpt,
    config: str | None = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Gets the core suite."""
    _run(
        lambda cfg: Get.new_core(save_path, branch or cfg.default_branch, force),
        config,
        verbose,
    )


@get_app.command()
def rts(
    branch: str | None = BranchOpt,
    save_path: str | None = SavePathOpt,
    force: bool = ForceOpt,
    config: str | None = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Gets the Sky-RTS from github."""
    _run(
        lambda cfg: Get.new_rts(save_path, branch or cfg.default_branch, force),
        config,
        verbose,
    )


@get_app.command()
def backend(
    url: str = typer.Argument(..., help="The URL to fetch from (optionally ending in @BRANCH)"),
    name: str | None = typer.Option(
        None, "--name", "-n", help="Save under <SCAII_HOME>/git/<NAME>"
    ),
    branch: str | None = BranchOpt,
    save_path: str | None = SavePathOpt,
    force: bool = ForceOpt,
    config: str | None = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Fetches an unknown backend."""
    try:
        source = parse_git_source(url)
        name_path = NameOrPath.try_from_path_or_name(save_path, name)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    _run(
        lambda cfg: Get.new_backend(
            name_path, branch or source.ref or cfg.default_branch, force, source.repo
        ),
        config,
        verbose,
    )


if __name__ == "__main__":
    app()
