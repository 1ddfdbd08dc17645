"""``itharness proxy``: run a workload proxy."""

from typing import Annotated

from cyclopts import App, Parameter

app = App(name="proxy", help="Run a workload proxy answering health checks.")


@app.default
def proxy(
    app_id: Annotated[str, Parameter(help="Workload path, e.g. /test/app.")],
    version_id: Annotated[str, Parameter(help="Workload version.")],
    health_url: Annotated[
        str, Parameter(help="Harness health URL; the proxy's port is appended.")
    ],
    *,
    proxy_id: Annotated[
        str | None, Parameter(help="Marker identifying this proxy's process.")
    ] = None,
    host: Annotated[str, Parameter(help="Interface to listen on.")] = "0.0.0.0",  # noqa: S104
    port: Annotated[
        int | None, Parameter(help="Port to listen on. Defaults to $PORT0, $PORT or a free port.")
    ] = None,
) -> None:
    """Serve a workload proxy until interrupted.

    The proxy forwards every health query to the harness and answers what
    the harness answers.
    """
    from itharness.proxy import run_proxy

    # Only used as a marker on the command line.
    del proxy_id
    run_proxy(app_id, version_id, health_url, host=host, port=port)
