from typing import Protocol

import typer


class Log(Protocol):
    def output(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class EchoLog:
    """Writes output to stdout and warnings/errors to stderr."""

    def output(self, message: str) -> None:
        typer.echo(message)

    def warning(self, message: str) -> None:
        typer.secho(f"warning: {message}", fg=typer.colors.YELLOW, err=True)

    def error(self, message: str) -> None:
        typer.secho(f"error: {message}", fg=typer.colors.RED, err=True)
