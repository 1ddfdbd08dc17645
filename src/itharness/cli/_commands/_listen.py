"""``itharness listen``: print events received from a server's event bus."""

import time
from typing import Annotated

from cyclopts import App, Parameter

from itharness.cli._context import CLIContext

app = App(name="listen", help="Run a callback endpoint and print received events.")


@app.default
def listen(
    *,
    host: Annotated[str, Parameter(help="Interface to listen on.")] = "127.0.0.1",
    port: Annotated[int, Parameter(help="Port to listen on. 0 picks a free port.")] = 0,
    server: Annotated[
        str | None, Parameter(help="Server URL to subscribe the endpoint with.")
    ] = None,
) -> None:
    """Print every event delivered to the callback endpoint until interrupted."""
    from itharness.api import ServerClient
    from itharness.callback import CallbackEndpoint
    from itharness.events import EventQueue
    from itharness.health import HealthCheckRegistry
    from itharness.wait import POLL_INTERVAL

    ctx = CLIContext.get_current()
    events = EventQueue()

    with CallbackEndpoint(events, HealthCheckRegistry(), host=host, port=port) as endpoint:
        ctx.console.print(f"Listening for events on [bold]{endpoint.url}[/bold]")
        client = ServerClient(server) if server is not None else None
        if client is not None:
            _ = client.subscribe(endpoint.url)
        try:
            while True:
                event = events.drain_matching(lambda _: True)
                if event is None:
                    time.sleep(POLL_INTERVAL)
                    continue
                ctx.console.rule(event.event_type)
                ctx.console.print_json(data=dict(event.payload))
        except KeyboardInterrupt:
            ctx.console.print("Stopping listener")
        finally:
            if client is not None:
                _ = client.unsubscribe(endpoint.url)
                client.close()
