"""The command-line interface for itharness."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from itharness.config import LogLevel, load_settings
from itharness.utils import logger_from_config

from ._commands import register_commands
from ._context import CLIContext

APP_HELP = "Integration-test harness for a supervised scheduler server."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Create the CLI application.

    Args:
        console: Console for command output.
        error_console: Console for errors.
        exit_on_error: Exit the interpreter on parse errors.

    Returns:
        The cyclopts application with every command registered.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="itharness",
        help=APP_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to a TOML settings file")
        ] = None,
        log_level: Annotated[
            LogLevel | None, Parameter(name="--log-level", help="Log level threshold")
        ] = None,
    ) -> None:
        """Launch the itharness CLI with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            config: Explicit path to a settings file.
            log_level: Override the configured log level.
        """
        overrides: dict[str, object] | None = None
        if log_level is not None:
            overrides = {"logging": {"level": log_level.value}}

        settings = load_settings(config, overrides=overrides)
        logger = logger_from_config("cli", settings.logging)

        CLIContext.set_current(CLIContext(settings=settings, console=console, logger=logger))
        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `itharness` CLI."""
    app = create_app()
    app.meta()
