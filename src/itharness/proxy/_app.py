# pyright: reportUnusedFunction=false
# FastAPI route handlers are registered via decorators, not direct calls
"""Workload proxy: an HTTP service whose health is decided by the harness.

Every health query the server sends to ``GET /`` is forwarded to the
harness's callback endpoint as ``GET <health_url>/<port>``. The proxy
answers 200 when the harness does and 500 otherwise.
"""

import os
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from itharness.utils import find_open_port

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

PORT_ENV_VARS = ("PORT0", "PORT")


@dataclass(frozen=True, slots=True)
class ProxyIdentity:
    """What a proxy reports about itself.

    Attributes:
        app_id: Workload path.
        version_id: Workload version.
        health_url: Callback URL without the trailing port segment.
        port: Port the proxy listens on.
    """

    app_id: str
    version_id: str
    health_url: str
    port: int

    @property
    def query_url(self) -> str:
        """Return the URL the harness answers this instance's health on."""
        return f"{self.health_url.rstrip('/')}/{self.port}"


def resolve_port(environ: Mapping[str, str] | None = None) -> int:
    """Return the port assigned by the server, or an ephemeral one.

    Args:
        environ: Environment to read; ``os.environ`` when None.

    Returns:
        The value of ``$PORT0`` or ``$PORT``, else a free port.
    """
    env = os.environ if environ is None else environ
    for name in PORT_ENV_VARS:
        value = env.get(name)
        if value:
            return int(value)
    return find_open_port()


@retry(
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
    reraise=True,
)
async def query_health(client: httpx.AsyncClient, url: str) -> bool:
    """Ask the harness whether this instance is healthy.

    Args:
        client: The httpx client to use.
        url: Health URL including the port segment.

    Returns:
        True if the harness answered 200.

    Raises:
        httpx.ConnectError: If connection fails after retries.
        httpx.TimeoutException: If request times out after retries.
    """
    response = await client.get(url)
    return response.status_code == status.HTTP_200_OK


def create_proxy_app(
    identity: ProxyIdentity,
    *,
    logger: "FilteringBoundLogger",
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the proxy application.

    Args:
        identity: The proxy's workload, version and ports.
        logger: Logger for health answers.
        transport: Custom httpx transport, for tests.

    Returns:
        A FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        app.state.client = httpx.AsyncClient(transport=transport, timeout=10.0)
        try:
            healthy = await query_health(app.state.client, identity.query_url)
            logger.info("proxy_started", url=identity.query_url, healthy=healthy)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.warning("proxy_health_unreachable", url=identity.query_url, error=str(e))
        yield
        await app.state.client.aclose()

    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None, lifespan=lifespan)

    @app.get("/")
    async def health(request: Request) -> JSONResponse:
        client = cast("httpx.AsyncClient", request.app.state.client)
        try:
            healthy = await query_health(client, identity.query_url)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.warning("proxy_health_unreachable", url=identity.query_url, error=str(e))
            healthy = False
        logger.debug("proxy_health", healthy=healthy)
        return JSONResponse(
            status_code=status.HTTP_200_OK if healthy else status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "appId": identity.app_id,
                "versionId": identity.version_id,
                "healthy": healthy,
            },
        )

    return app
