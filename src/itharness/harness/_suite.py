"""Composition root for a suite running against live servers."""

from collections.abc import Mapping
from types import TracebackType
from typing import Self, final

from itharness.api import ClusterClient, ServerClient
from itharness.config import HarnessSettings, load_settings
from itharness.path_id import PathId
from itharness.supervisor import ServerSupervisor, start_all

from ._harness import IntegrationHarness


@final
class ServerSuite:
    """Builds and owns the servers, clients and harness of one test suite.

    Meant to be wrapped in a session-scoped pytest fixture::

        @pytest.fixture(scope="session")
        def suite():
            with ServerSuite(master_url, zk_url, cluster_url) as suite:
                yield suite.open()

    Attributes:
        server: The primary supervised server.
        additional_servers: Further servers sharing the coordination URL.
        client: API client of the primary server.
        clients: API clients of every server, primary first.
        cluster: API client of the resource cluster.
        harness: Harness wired to the primary server.
    """

    def __init__(  # noqa: PLR0913
        self,
        master_url: str,
        coordination_url: str,
        cluster_url: str,
        *,
        extra_config: Mapping[str, str] | None = None,
        additional_servers: int = 0,
        base_path: "str | PathId" = "/",
        settings: HarnessSettings | None = None,
        log_output: bool = False,
    ) -> None:
        """Configure every server without starting any.

        Args:
            master_url: Cluster master URL passed to each server.
            coordination_url: Coordination service URL passed to each server.
            cluster_url: HTTP URL of the cluster master's state API.
            extra_config: Server settings overriding the fixed ones.
            additional_servers: Number of servers besides the primary.
            base_path: Group every test workload lives in.
            settings: Harness settings; loaded from the environment when None.
            log_output: Forward the servers' output to their loggers.
        """
        self.settings = settings or load_settings()
        self.server, *self.additional_servers = [
            ServerSupervisor(
                master_url,
                coordination_url,
                extra_config,
                auto_start=False,
                runtime=self.settings.runtime,
                log_output=log_output,
                logging_config=self.settings.logging,
            )
            for _ in range(additional_servers + 1)
        ]
        self.clients = [
            ServerClient(server.url, base_path) for server in (self.server, *self.additional_servers)
        ]
        self.client = self.clients[0]
        self.cluster = ClusterClient(cluster_url)
        self.harness = IntegrationHarness(self.client, self.cluster, settings=self.settings)

    @property
    def servers(self) -> list[ServerSupervisor]:
        return [self.server, *self.additional_servers]

    def open(self) -> Self:
        """Start every server, then the callback endpoint.

        Raises:
            ServerSpawnError: If a server fails to spawn.
            ReadinessTimeoutError: If a server is not ready in time.
        """
        start_all(self.servers, self.settings.timeouts.server_start)
        _ = self.harness.callback_endpoint
        return self

    def close(self) -> None:
        """Tear everything down in reverse order of ``open()``."""
        try:
            self.harness.close()
        finally:
            for server in reversed(self.servers):
                server.close()
            for client in self.clients:
                client.close()
            self.cluster.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
