"""HTTP listener for server callbacks, served from a background thread."""

import socket
import threading
from types import TracebackType
from typing import TYPE_CHECKING, Self, final

import uvicorn

from itharness.events import EventQueue
from itharness.exceptions import HarnessError, ProtocolViolationError
from itharness.health import HealthCheckRegistry
from itharness.path_id import PathId
from itharness.utils import create_harness_logger
from itharness.wait import wait_until

from ._app import create_callback_app

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

STARTUP_TIMEOUT = 10.0
SHUTDOWN_TIMEOUT = 5.0


@final
class CallbackEndpoint:
    """Callback listener, bound to an ephemeral port unless told otherwise.

    The FastAPI application runs on uvicorn in a daemon thread, so HTTP
    handlers keep serving while the test thread blocks in a wait. The
    listening socket is bound before the server starts, so ``port`` is
    known without racing another process for it.

    Protocol violations are recorded and re-raised from
    ``raise_for_violations()`` on the test thread.
    """

    __slots__ = (
        "_lock",
        "_logger",
        "_server",
        "_socket",
        "_thread",
        "_violations",
        "events",
        "host",
        "registry",
        "requested_port",
    )

    def __init__(
        self,
        events: EventQueue,
        registry: HealthCheckRegistry,
        *,
        host: str = "127.0.0.1",
        port: int = 0,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the endpoint without binding anything.

        Args:
            events: Queue receiving event notifications.
            registry: Registry answering health queries.
            host: Interface to listen on.
            port: Port to listen on; 0 picks an ephemeral port.
            logger: Logger for received traffic.
        """
        self.events = events
        self.registry = registry
        self.host = host
        self.requested_port = port
        self._logger = logger or create_harness_logger("callback")
        self._violations: list[ProtocolViolationError] = []
        self._lock = threading.Lock()
        self._socket: socket.socket | None = None
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def port(self) -> int:
        """Return the bound port.

        Raises:
            HarnessError: If the endpoint has not been started.
        """
        if self._socket is None:
            msg = "Callback endpoint is not started"
            raise HarnessError(msg)
        return int(self._socket.getsockname()[1])

    @property
    def url(self) -> str:
        """Return the URL subscribed with the server's event bus."""
        return f"http://{self.host}:{self.port}"

    def health_url(self, workload_id: PathId, version_id: str, host: str = "127.0.0.1") -> str:
        """Return the URL a proxy appends its port to when asking for health."""
        return f"http://{host}:{self.port}/health{workload_id}/{version_id}"

    def _record_violation(self, violation: ProtocolViolationError) -> None:
        with self._lock:
            self._violations.append(violation)

    def violations(self) -> list[ProtocolViolationError]:
        with self._lock:
            return list(self._violations)

    def raise_for_violations(self) -> None:
        """Re-raise the first protocol violation seen since the last call.

        Raises:
            ProtocolViolationError: If any request could not be routed.
        """
        with self._lock:
            violations, self._violations = self._violations, []
        if violations:
            raise violations[0]

    def start(self) -> None:
        """Bind the port and start serving. Idempotent.

        Raises:
            HarnessError: If the server thread does not come up.
        """
        if self.running:
            return

        app = create_callback_app(
            self.events,
            self.registry,
            logger=self._logger,
            on_violation=self._record_violation,
        )
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.host, self.requested_port))

        config = uvicorn.Config(app=app, log_level="warning", access_log=False)
        server = uvicorn.Server(config)
        thread = threading.Thread(
            target=server.run,
            kwargs={"sockets": [sock]},
            name=f"callback-endpoint-{sock.getsockname()[1]}",
            daemon=True,
        )

        self._socket = sock
        self._server = server
        self._thread = thread
        thread.start()

        try:
            wait_until(
                "callback endpoint to start",
                STARTUP_TIMEOUT,
                lambda: server.started or not thread.is_alive(),
            )
        except HarnessError:
            self.stop()
            raise
        if not server.started:
            self.stop()
            msg = "Callback endpoint exited during startup"
            raise HarnessError(msg)

        self._logger.info("callback_endpoint_listening", port=self.port)

    def stop(self) -> None:
        """Stop serving and release the port. Idempotent."""
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(SHUTDOWN_TIMEOUT)
            if self._thread.is_alive():
                self._logger.warning("callback_endpoint_stop_timeout")
        if self._socket is not None:
            self._socket.close()
            self._logger.info("callback_endpoint_stopped")

        self._server = None
        self._thread = None
        self._socket = None

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.stop()
