"""``itharness server``: run a supervised server for manual debugging."""

import time
from typing import Annotated

from cyclopts import App, Parameter

from itharness.cli._context import CLIContext

app = App(name="server", help="Run a supervised server until interrupted.")

POLL_SECONDS = 0.5


def parse_settings(values: list[str]) -> dict[str, str]:
    """Parse ``key=value`` pairs into server settings.

    Raises:
        ValueError: If a pair has no ``=``.
    """
    settings: dict[str, str] = {}
    for value in values:
        key, sep, setting = value.partition("=")
        if not sep or not key:
            msg = f"Expected key=value, got {value!r}"
            raise ValueError(msg)
        settings[key] = setting
    return settings


@app.default
def server(
    master_url: Annotated[str, Parameter(help="Cluster master URL.")],
    coordination_url: Annotated[str, Parameter(help="Coordination service URL.")],
    *,
    setting: Annotated[
        list[str] | None, Parameter(help="Extra server setting as key=value. Repeatable.")
    ] = None,
    timeout: Annotated[
        float | None, Parameter(help="Readiness budget in seconds.")
    ] = None,
) -> None:
    """Start a server with the harness's fixed settings and keep it running."""
    from itharness.supervisor import ServerSupervisor

    ctx = CLIContext.get_current()
    budget = ctx.settings.timeouts.server_start if timeout is None else timeout

    with ServerSupervisor(
        master_url,
        coordination_url,
        parse_settings(setting or []),
        auto_start=False,
        runtime=ctx.settings.runtime,
        log_output=True,
        logging_config=ctx.settings.logging,
    ) as supervisor:
        ctx.console.print(f"Starting [bold]{supervisor.name}[/bold] in {supervisor.work_dir}")
        supervisor.start(timeout=budget)
        ctx.console.print(f"Server ready at {supervisor.url} (pid {supervisor.pid})")
        try:
            while supervisor.running:
                time.sleep(POLL_SECONDS)
        except KeyboardInterrupt:
            ctx.console.print("Stopping server")
        else:
            ctx.console.print("[yellow]Server exited[/yellow]")
