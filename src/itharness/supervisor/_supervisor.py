"""Lifecycle of one supervised server process.

The supervisor spawns the server binary, then converges on readiness by
probing ``GET /v2/leader`` with exponential backoff. The only bound on the
probe loop is the caller's timeout.
"""

import shutil
import subprocess
import tempfile
import threading
from collections.abc import Mapping
from pathlib import Path
from types import TracebackType
from typing import IO, TYPE_CHECKING, Self, final

import httpx
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_before_delay,
    stop_never,
    wait_exponential,
)

from itharness.config import LoggingConfig, RuntimeConfig
from itharness.exceptions import ReadinessTimeoutError, ServerSpawnError, SupervisorError
from itharness.utils import find_open_port, logger_from_config
from itharness.wait import Deadline

from ._models import SECRET_CONTENT, SECRET_FILE_PREFIX, ServerSettings, ServerState

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

READINESS_PATH = "/v2/leader"
PROBE_TIMEOUT = 2.0
MIN_PROBE_TIMEOUT = 0.05
KILL_TIMEOUT = 10.0


def _write_secret(work_dir: Path) -> Path:
    handle, name = tempfile.mkstemp(prefix=SECRET_FILE_PREFIX, dir=work_dir)
    with open(handle, "w", encoding="utf-8") as secret:
        _ = secret.write(SECRET_CONTENT)
    path = Path(name)
    path.chmod(0o644)
    return path


@final
class ServerSupervisor:
    """Owns one server child process, its port and its working directory.

    Construction allocates the port, creates the working directory and
    writes the secret file. ``start()``, ``stop()`` and ``close()`` are
    idempotent; at most one child is alive at any time.

    Attributes:
        master_url: Cluster master URL passed to the server.
        coordination_url: Coordination service URL passed to the server.
        http_port: Port the server listens on.
        work_dir: Private working directory, removed by ``close()``.
        secret_file: Authentication secret inside ``work_dir``.
        settings: Ordered server settings.
        runtime: How the server binary is launched.
    """

    __slots__ = (
        "_closed",
        "_logger",
        "_output_threads",
        "_process",
        "_state",
        "coordination_url",
        "http_port",
        "log_output",
        "master_url",
        "runtime",
        "secret_file",
        "settings",
        "work_dir",
    )

    def __init__(  # noqa: PLR0913
        self,
        master_url: str,
        coordination_url: str,
        extra_config: Mapping[str, str] | None = None,
        *,
        auto_start: bool = True,
        runtime: RuntimeConfig | None = None,
        log_output: bool = False,
        logging_config: LoggingConfig | None = None,
        http_port: int | None = None,
    ) -> None:
        """Configure the server, and start it when ``auto_start`` is set.

        Args:
            master_url: Cluster master URL.
            coordination_url: Coordination service URL.
            extra_config: Server settings overriding the fixed ones.
            auto_start: Call ``start()`` without a timeout before returning.
            runtime: Launch configuration; defaults apply when None.
            log_output: Forward the child's stdout and stderr to the logger.
            logging_config: Logger settings; environment defaults apply when None.
            http_port: Port to listen on; an ephemeral port when None.
        """
        self.master_url = master_url
        self.coordination_url = coordination_url
        self.runtime = runtime or RuntimeConfig()
        self.log_output = log_output
        self.http_port = http_port if http_port is not None else find_open_port()
        self._logger: "FilteringBoundLogger" = logger_from_config(self.name, logging_config)

        self.work_dir = Path(tempfile.mkdtemp(prefix=f"server-{self.http_port}-"))
        self.secret_file = _write_secret(self.work_dir)
        self.settings = ServerSettings.build(
            master_url=master_url,
            coordination_url=coordination_url,
            http_port=self.http_port,
            secret_file=self.secret_file,
            extra=extra_config,
        )

        self._process: subprocess.Popen[str] | None = None
        self._output_threads: list[threading.Thread] = []
        self._state = ServerState.NOT_STARTED
        self._closed = False

        if auto_start:
            self.start()

    @property
    def name(self) -> str:
        """Return the server name used in logs and errors."""
        return f"server:{self.http_port}"

    @property
    def url(self) -> str:
        return f"http://localhost:{self.http_port}"

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def pid(self) -> int | None:
        """Return the child's process ID while one is recorded."""
        return None if self._process is None else self._process.pid

    @property
    def running(self) -> bool:
        """Return True if a recorded child is still alive."""
        return self._process is not None and self._process.poll() is None

    @property
    def command(self) -> list[str]:
        """Return the full child command line."""
        return [*self.runtime.command_prefix(), *self.settings.args()]

    def start(self, timeout: float | None = None) -> None:
        """Spawn the server and block until it answers its readiness probe.

        Does nothing if a child is already running. On any failure the child
        is killed and forgotten, so ``start()`` may be called again.

        Args:
            timeout: Seconds to wait for readiness; None waits indefinitely.

        Raises:
            SupervisorError: If the supervisor has been closed.
            ServerSpawnError: If the child cannot be created or exits
                before becoming ready.
            ReadinessTimeoutError: If the child is not ready within ``timeout``.
        """
        if self._closed:
            msg = f"{self.name} is closed"
            raise SupervisorError(msg)
        if self.running:
            return
        if self._process is not None:
            self._logger.warning("server_exited", exit_code=self._process.returncode)
            self._discard_process()
            self._state = ServerState.STOPPED

        process = self._spawn()
        try:
            self._await_ready(process, timeout)
        except BaseException:
            self._discard_process()
            raise

        self._state = ServerState.RUNNING
        self._logger.info("server_ready", pid=process.pid)

    def _spawn(self) -> "subprocess.Popen[str]":
        self._logger.info("server_starting", command=self.command, cwd=str(self.work_dir))
        stream = subprocess.PIPE if self.log_output else None
        try:
            process = subprocess.Popen(  # noqa: S603
                self.command,
                cwd=self.work_dir,
                stdout=stream,
                stderr=stream,
                text=True,
            )
        except OSError as e:
            msg = f"Failed to spawn {self.name}: {e}"
            raise ServerSpawnError(msg, service_name=self.name, cause=e) from e

        self._process = process
        if self.log_output:
            self._forward_output(process)
        return process

    def _forward_output(self, process: "subprocess.Popen[str]") -> None:
        streams: list[tuple[IO[str] | None, str]] = [
            (process.stdout, "info"),
            (process.stderr, "warning"),
        ]
        for stream, level in streams:
            if stream is None:
                continue
            thread = threading.Thread(
                target=self._pump,
                args=(stream, level),
                name=f"{self.name}-{level}",
                daemon=True,
            )
            thread.start()
            self._output_threads.append(thread)

    def _pump(self, stream: IO[str], level: str) -> None:
        log = self._logger.info if level == "info" else self._logger.warning
        with stream:
            for line in stream:
                log("server_output", line=line.rstrip("\n"))

    def _await_ready(self, process: "subprocess.Popen[str]", timeout: float | None) -> None:
        attempts = 0
        url = f"{self.url}{READINESS_PATH}"
        deadline = None if timeout is None else Deadline.after(timeout)

        def probe(client: httpx.Client) -> None:
            nonlocal attempts
            attempts += 1
            exit_code = process.poll()
            if exit_code is not None:
                msg = f"{self.name} exited with code {exit_code} before becoming ready"
                raise ServerSpawnError(msg, service_name=self.name, exit_code=exit_code)
            probe_timeout = PROBE_TIMEOUT
            if deadline is not None:
                probe_timeout = max(MIN_PROBE_TIMEOUT, min(PROBE_TIMEOUT, deadline.remaining()))
            response = client.get(url, timeout=probe_timeout)
            _ = response.raise_for_status()

        def log_retry(retry_state: RetryCallState) -> None:
            outcome = retry_state.outcome
            error = None if outcome is None else outcome.exception()
            self._logger.debug(
                "server_not_ready",
                attempt=retry_state.attempt_number,
                error=str(error),
            )

        retrying = Retrying(
            retry=retry_if_exception_type(httpx.HTTPError),
            wait=wait_exponential(multiplier=0.001, min=0.001, max=5),
            stop=stop_never if timeout is None else stop_before_delay(timeout),
            before_sleep=log_retry,
        )

        with httpx.Client(timeout=PROBE_TIMEOUT) as client:
            try:
                retrying(probe, client)
            except RetryError as e:
                msg = f"{self.name} was not ready after {timeout}s ({attempts} probes)"
                raise ReadinessTimeoutError(
                    msg,
                    service_name=self.name,
                    timeout=timeout,
                    attempts=attempts,
                ) from e

    def _discard_process(self) -> None:
        process, self._process = self._process, None
        if process is None:
            return
        if process.poll() is None:
            process.kill()
        try:
            _ = process.wait(timeout=KILL_TIMEOUT)
        except subprocess.TimeoutExpired:
            self._logger.warning("server_kill_timeout", pid=process.pid)
        for thread in self._output_threads:
            thread.join(KILL_TIMEOUT)
        self._output_threads.clear()

    def stop(self) -> None:
        """Kill the child if one is recorded. Idempotent."""
        if self._process is None:
            return
        pid = self._process.pid
        self._discard_process()
        self._state = ServerState.STOPPED
        self._logger.info("server_stopped", pid=pid)

    def close(self) -> None:
        """Stop the server and delete its working directory.

        Deletion failures are logged; ``close()`` never raises for them.
        """
        self.stop()
        if self._closed:
            return
        self._closed = True
        try:
            shutil.rmtree(self.work_dir)
        except OSError as e:
            self._logger.warning("work_dir_cleanup_failed", path=str(self.work_dir), error=str(e))

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
