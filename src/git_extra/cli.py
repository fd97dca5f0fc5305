from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import typer
from .log import EchoLog
from .models import GitExtraError, ProvisionRequest
from .utils import (
    DEFAULT_REMOTE_NAME,
    default_catalog_path,
    format_catalog,
    provision,
    read_catalog,
    read_remote_listing,
    resolve_remote,
)


app = typer.Typer(
    help="Extra git commands for browsing and starting projects.", no_args_is_help=True
)
quick_start_app = typer.Typer(
    help="Commands to quickly start projects", no_args_is_help=True
)
app.add_typer(quick_start_app, name="quick-start")

log = EchoLog()

CATALOG_HELP = (
    "Path to the repository catalog "
    "(defaults to $HOME/.config/git_extra/repos.toml)"
)


def _version_callback(value: bool) -> None:
    if value:
        try:
            typer.echo(version("git-extra"))
        except PackageNotFoundError:
            typer.echo("unknown")
        raise typer.Exit()


def _catalog_path(catalog: Path | None) -> Path:
    return catalog if catalog is not None else default_catalog_path()


@app.callback()
def main(
    show_version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    pass


@app.command()
def browse(
    origin: str = typer.Option(
        DEFAULT_REMOTE_NAME, "--origin", help="Override name of the origin repository"
    ),
) -> None:
    """
    Browse to the origin repository web page.
    """
    try:
        url = resolve_remote(read_remote_listing(), origin)
    except GitExtraError as e:
        log.error(str(e))
        raise typer.Exit(code=1)
    if url is None:
        log.warning(f"No remote named '{origin}' with a recognized URL")
        return
    log.output(f"Opening URL '{url}'")
    if typer.launch(url) != 0:
        log.error(f"Unable to open a browser for '{url}'")
        raise typer.Exit(code=1)


@quick_start_app.command("list")
def list_cmd(
    catalog: Path | None = typer.Option(
        None, "--catalog", envvar="GIT_EXTRA_CATALOG", help=CATALOG_HELP
    ),
    legacy_list: bool = typer.Option(False, "--list", "-l", hidden=True),
) -> None:
    """
    List all available named repositories in your catalog.
    """
    try:
        entries = read_catalog(_catalog_path(catalog), log)
    except GitExtraError as e:
        log.error(str(e))
        raise typer.Exit(code=1)
    for line in format_catalog(entries):
        log.output(line)


@quick_start_app.command()
def create(
    url_or_name: str = typer.Argument(
        ..., help="A name or URL of a Git repository to clone"
    ),
    directory: Path = typer.Argument(
        ..., help="Name of the directory to clone the repo into"
    ),
    customizer: str | None = typer.Option(
        None,
        "--customizer",
        "-c",
        help="The name of the customization file relative to the new project directory",
    ),
    catalog: Path | None = typer.Option(
        None, "--catalog", envvar="GIT_EXTRA_CATALOG", help=CATALOG_HELP
    ),
) -> None:
    """
    Create a new project by cloning a repo and running a customization script.
    """
    request = ProvisionRequest(
        source_text=url_or_name,
        target_directory=directory,
        customizer_override=customizer,
    )
    try:
        entries = read_catalog(_catalog_path(catalog), log)
        provision(request, entries, log)
    except GitExtraError as e:
        log.error(str(e))
        raise typer.Exit(code=1)
