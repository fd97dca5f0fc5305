import os
from pathlib import Path
import re
import subprocess
import tomllib

import typer
from .log import Log
from .models import (
    CatalogEntry,
    CatalogError,
    CloneError,
    CustomizerError,
    GitError,
    ParsedRemoteUrl,
    ProvisionRequest,
    ProvisionResult,
    RemoteDirection,
    RemoteRecord,
    ResolvedSource,
    UnrecognizedSourceError,
)

DEFAULT_CUSTOMIZER_NAME = "customize.ts"
DEFAULT_REMOTE_NAME = "origin"
FILE_URL_PREFIX = "file://"

RE_REMOTE_LINE = re.compile(
    r"^(?P<name>[a-zA-Z0-9\-]+)\s+(?P<url>.*?)\s+\((?P<direction>fetch|push)\)$"
)
RE_SSH = re.compile(
    r"^git@(?P<domain>[a-z0-9\-\.]+):(?P<user>[a-zA-Z0-9\-_]+)/(?P<project>[a-zA-Z0-9\-_]+)\.git$"
)
RE_HTTPS = re.compile(
    r"^https://([a-zA-Z0-9\-_]+@)?(?P<domain>[a-z0-9\-\.]+)/(?P<user>[a-zA-Z0-9\-_]+)/(?P<project>[a-zA-Z0-9\-_]+)\.git$"
)


def read_toml(path: Path) -> dict:
    with path.open("rb") as f:
        return tomllib.load(f)


def default_catalog_path() -> Path:
    home = os.environ.get("HOME", str(Path.home()))
    return Path(home) / ".config" / "git_extra" / "repos.toml"


def read_remote_listing(cwd: Path | None = None) -> str:
    # Undecodable bytes can't match the URL patterns, so they only need to
    # survive decoding.
    try:
        res = subprocess.run(
            ["git", "remote", "-vv"],
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
            errors="replace",
        )
    except OSError as e:
        raise GitError(f"Unable to run `git remote -vv`: {e}") from e
    if res.returncode != 0:
        raise GitError(
            f"`git remote -vv` failed with exit code {res.returncode}: "
            f"{res.stderr.strip()}"
        )
    return res.stdout


def parse_remote_listing(text: str) -> list[RemoteRecord]:
    """Parse `git remote -vv` output into records.

    Lines that don't look like ``<name> <url> (fetch|push)`` are skipped, since
    a listing may hold blank lines or formats from newer git versions.
    """
    records = []
    for line in text.splitlines():
        m = RE_REMOTE_LINE.match(line.strip())
        if not m:
            continue
        records.append(
            RemoteRecord(
                name=m.group("name"),
                url=m.group("url"),
                direction=RemoteDirection(m.group("direction")),
            )
        )
    return records


def parse_remote_url(url: str) -> ParsedRemoteUrl | None:
    m = RE_SSH.match(url) or RE_HTTPS.match(url)
    if not m:
        return None
    return ParsedRemoteUrl(
        domain=m.group("domain"), user=m.group("user"), project=m.group("project")
    )


def is_remote_url(text: str) -> bool:
    return bool(RE_SSH.match(text) or RE_HTTPS.match(text))


def resolve_remote(listing: str, remote_name: str = DEFAULT_REMOTE_NAME) -> str | None:
    # Several fetch lines may share a name; the first one that parses wins.
    for record in parse_remote_listing(listing):
        if record.direction is not RemoteDirection.FETCH:
            continue
        if record.name != remote_name:
            continue
        parsed = parse_remote_url(record.url)
        if parsed is None:
            continue
        return parsed.browse_url
    return None


def _optional_str(path: Path, name: str, table: dict, key: str) -> str | None:
    value = table.get(key)
    if value is not None and not isinstance(value, str):
        raise CatalogError(path, f"'{name}.{key}' must be a string")
    return value


def read_catalog(path: Path, log: Log) -> dict[str, CatalogEntry]:
    """Load the named repository catalog.

    A missing file is not an error: it is reported as a warning and an empty
    catalog is returned. Invalid TOML (including bytes that aren't UTF-8) or
    entries that don't follow the schema raise `CatalogError`.
    """
    try:
        data = read_toml(path)
    except FileNotFoundError:
        log.warning(f"'{path}' not found")
        return {}
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise CatalogError(path, str(e)) from e
    except OSError as e:
        raise CatalogError(path, str(e)) from e

    catalog: dict[str, CatalogEntry] = {}
    for name, table in data.items():
        if not isinstance(table, dict):
            raise CatalogError(path, f"'{name}' must be a table")
        origin = table.get("origin")
        if not isinstance(origin, str):
            raise CatalogError(
                path, f"'{name}.origin' is required and must be a string"
            )
        catalog[name] = CatalogEntry(
            name=name,
            origin=origin,
            customizer=_optional_str(path, name, table, "customizer"),
            description=_optional_str(path, name, table, "description"),
        )
    return catalog


def format_catalog(catalog: dict[str, CatalogEntry]) -> list[str]:
    if not catalog:
        return []
    width = max(len(name) for name in catalog) + 3
    lines = []
    for name in sorted(catalog):
        entry = catalog[name]
        lines.append(f"{name:<{width}} {entry.origin}")
        if entry.description:
            description = typer.style(entry.description, fg=typer.colors.BRIGHT_WHITE)
            lines.append(f"{'':<{width}} {description}")
    return lines


def resolve_source(
    source_text: str, catalog: dict[str, CatalogEntry]
) -> ResolvedSource:
    # Literal URLs take priority over catalog names.
    if is_remote_url(source_text):
        return ResolvedSource(source_text, DEFAULT_CUSTOMIZER_NAME)
    if source_text.startswith(FILE_URL_PREFIX):
        return ResolvedSource(
            source_text.removeprefix(FILE_URL_PREFIX), DEFAULT_CUSTOMIZER_NAME
        )
    entry = catalog.get(source_text)
    if entry is not None:
        if entry.customizer is not None:
            return ResolvedSource(entry.origin, entry.customizer)
        return ResolvedSource(entry.origin, DEFAULT_CUSTOMIZER_NAME)
    raise UnrecognizedSourceError(source_text)


def resolve_customizer_name(resolved: ResolvedSource, override: str | None) -> str:
    # Command line beats the catalog entry, which already beats the default.
    if override is not None:
        return override
    return resolved.customizer_candidate


def clone_repository(url: str, directory: Path) -> None:
    try:
        res = subprocess.run(["git", "clone", url, str(directory)], check=False)
    except OSError as e:
        raise CloneError(url, str(e)) from e
    if res.returncode != 0:
        raise CloneError(url, f"git exited with code {res.returncode}")


def run_customizer(customizer_path: Path, project_dir: Path) -> None:
    project_dir = project_dir.resolve()
    try:
        res = subprocess.run(
            [str(customizer_path.resolve()), project_dir.name],
            cwd=project_dir,
            check=False,
        )
    except OSError as e:
        raise CustomizerError(customizer_path, str(e)) from e
    if res.returncode != 0:
        raise CustomizerError(customizer_path, f"exited with code {res.returncode}")


def provision(
    request: ProvisionRequest, catalog: dict[str, CatalogEntry], log: Log
) -> ProvisionResult:
    """Clone a repository and run its customization script.

    The steps run strictly in order: resolve the source, clone, look for the
    customizer inside the new directory and run it if present. A missing
    customizer only produces a warning.
    """
    resolved = resolve_source(request.source_text, catalog)
    customizer_name = resolve_customizer_name(resolved, request.customizer_override)
    target = request.target_directory
    customizer_path = target / customizer_name

    clone_repository(resolved.clone_url, target)

    result = ProvisionResult(
        clone_url=resolved.clone_url,
        target_directory=target,
        customizer_path=customizer_path,
        customizer_ran=False,
    )
    if not customizer_path.is_file():
        log.warning(f"Customization file '{customizer_path}' not found")
        return result

    log.output("Running the customization script")
    run_customizer(customizer_path, target)
    result.customizer_ran = True
    return result
