import sys
from pathlib import Path

import httpx

from itharness.config import load_settings
from itharness.harness import ServerSuite

STUB_SERVER = Path(__file__).parent.parent.parent / "fixtures" / "stub_server.py"


def make_suite(tmp_path: Path, additional_servers: int = 0) -> ServerSuite:
    settings = load_settings(
        overrides={
            "runtime": {
                "executable": sys.executable,
                "options": ["-u"],
                "entry_point": str(STUB_SERVER),
            },
            "logging": {"file": str(tmp_path / "suite.log")},
        },
        environ={},
    )
    return ServerSuite(
        "127.0.0.1:5050",
        "zk://localhost:2181/test",
        "http://127.0.0.1:5050",
        additional_servers=additional_servers,
        base_path="/test",
        settings=settings,
    )


class TestServerSuite:
    def test_open_starts_servers_and_subscribes(self, tmp_path: Path) -> None:
        with make_suite(tmp_path, additional_servers=1) as suite:
            _ = suite.open()

            assert all(server.running for server in suite.servers)
            subscribers = suite.client.list_subscribers().value.callback_urls
            assert subscribers == [suite.harness.callback_endpoint.url]
            assert suite.harness.base_path.parts == ("test",)
            work_dirs = [server.work_dir for server in suite.servers]

        assert not any(server.running for server in suite.servers)
        assert not any(work_dir.exists() for work_dir in work_dirs)

    def test_close_unsubscribes(self, tmp_path: Path) -> None:
        suite = make_suite(tmp_path)
        url = suite.server.url
        try:
            _ = suite.open()
            suite.harness.close()

            callback_urls = httpx.get(f"{url}/v2/eventSubscriptions").json()["callbackUrls"]
            assert callback_urls == []
        finally:
            suite.close()
