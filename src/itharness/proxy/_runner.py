"""Run a workload proxy in the foreground."""

import uvicorn

from itharness.utils import create_harness_logger

from ._app import ProxyIdentity, create_proxy_app, resolve_port


def run_proxy(
    app_id: str,
    version_id: str,
    health_url: str,
    *,
    host: str = "0.0.0.0",  # noqa: S104
    port: int | None = None,
) -> None:
    """Serve the proxy until interrupted.

    Args:
        app_id: Workload path.
        version_id: Workload version.
        health_url: Callback URL without the trailing port segment.
        host: Interface to listen on.
        port: Port to listen on; resolved from the environment when None.
    """
    identity = ProxyIdentity(
        app_id=app_id,
        version_id=version_id,
        health_url=health_url,
        port=port if port is not None else resolve_port(),
    )
    logger = create_harness_logger(f"proxy:{identity.port}").bind(
        app_id=app_id, version_id=version_id
    )
    app = create_proxy_app(identity, logger=logger)
    config = uvicorn.Config(app=app, host=host, port=identity.port, log_level="warning")
    uvicorn.Server(config).run()
