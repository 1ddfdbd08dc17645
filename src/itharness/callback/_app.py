# pyright: reportUnusedFunction=false
# FastAPI route handlers are registered via decorators, not direct calls
"""FastAPI application answering the server's callbacks.

Two traffic classes arrive here:
- ``POST /``: event bus notifications, appended to the EventQueue
- ``GET /health/<workload path>/<version>/<port>``: health queries from
  workload proxies, answered from the HealthCheckRegistry

Any other GET is a wiring bug between harness and server. It is reported
through ``on_violation`` and answered with 500.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import orjson
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from itharness.events import CallbackEvent, EventQueue, event_type_of
from itharness.exceptions import ProtocolViolationError
from itharness.health import HealthCheckRegistry
from itharness.path_id import PathId

from ._schemas import AckResponse, HealthResponse

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

ViolationHandler = Callable[[ProtocolViolationError], None]


def _decode_body(raw: bytes) -> Any:  # pyright: ignore[reportExplicitAny]
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return None


def parse_health_path(path: str) -> tuple[PathId, str, int]:
    """Split ``<workload segments...>/<version>/<port>`` into its parts.

    Args:
        path: The request path after ``/health/``.

    Returns:
        Tuple of (absolute workload id, version id, port).

    Raises:
        ProtocolViolationError: If the path has no version/port suffix or
            the port is not an integer.
    """
    segments = [segment for segment in path.split("/") if segment]
    if len(segments) < 2:  # noqa: PLR2004
        msg = f"/health/{path} has no <version>/<port> suffix"
        raise ProtocolViolationError(msg, method="GET", path=f"/health/{path}")

    *workload, version_id, raw_port = segments
    try:
        port = int(raw_port)
    except ValueError as e:
        msg = f"/health/{path} has a non-numeric port {raw_port!r}"
        raise ProtocolViolationError(msg, method="GET", path=f"/health/{path}") from e

    return PathId(tuple(workload), absolute=True), version_id, port


def create_callback_app(
    events: EventQueue,
    registry: HealthCheckRegistry,
    *,
    logger: "FilteringBoundLogger",
    on_violation: ViolationHandler | None = None,
) -> FastAPI:
    """Create the callback application.

    Args:
        events: Queue receiving event notifications.
        registry: Registry answering health queries.
        logger: Logger for received traffic.
        on_violation: Called with every protocol violation before the 500
            response is sent.

    Returns:
        A FastAPI application.
    """
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.exception_handler(ProtocolViolationError)
    async def handle_violation(_request: Request, exc: ProtocolViolationError) -> JSONResponse:
        logger.error("protocol_violation", method=exc.method, path=exc.path, error=str(exc))
        if on_violation is not None:
            on_violation(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc)},
        )

    @app.post("/")
    async def receive_event(request: Request) -> AckResponse:
        body = _decode_body(await request.body())
        kind = event_type_of(body)
        payload: dict[str, Any] = dict(body) if isinstance(body, dict) else {}  # pyright: ignore[reportExplicitAny,reportUnknownArgumentType]
        logger.info("callback_event_received", event_type=kind, payload=payload)
        events.push(CallbackEvent(kind, payload))
        return AckResponse(event_type=kind)

    @app.get("/health/{path:path}")
    async def answer_health(path: str) -> JSONResponse:
        workload_id, version_id, port = parse_health_path(path)
        healthy = registry.resolve(workload_id, version_id, port)
        logger.debug(
            "health_query",
            workload_id=str(workload_id),
            version_id=version_id,
            port=port,
            healthy=healthy,
        )
        if healthy:
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content=HealthResponse(status="healthy").model_dump(),
            )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=HealthResponse(status="unhealthy").model_dump(),
        )

    @app.get("/{path:path}")
    async def reject_unmatched(path: str) -> JSONResponse:
        msg = f"/{path} was unmatched"
        raise ProtocolViolationError(msg, method="GET", path=f"/{path}")

    return app
