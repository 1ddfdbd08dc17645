"""Workload proxy launched by the server on behalf of tests.

Key Components:
    - ProxyIdentity: Workload, version and port a proxy reports
    - create_proxy_app: FastAPI application mirroring the harness's answer
    - run_proxy: Serve a proxy in the foreground
"""

from ._app import PORT_ENV_VARS, ProxyIdentity, create_proxy_app, query_health, resolve_port
from ._runner import run_proxy

__all__ = [
    "PORT_ENV_VARS",
    "ProxyIdentity",
    "create_proxy_app",
    "query_health",
    "resolve_port",
    "run_proxy",
]
