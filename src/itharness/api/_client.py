"""HTTP clients for the server under test and its resource cluster."""

from collections.abc import Collection, Mapping
from types import TracebackType
from typing import TYPE_CHECKING, Any, Self, final

import httpx
import orjson

from itharness.exceptions import ServerApiError
from itharness.path_id import PathId
from itharness.utils import create_harness_logger
from itharness.workloads import AppDefinition

from ._models import ClusterState, DeploymentResult, RestResult, SubscriberList, Task

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

DEFAULT_TIMEOUT = 30.0


def _decode(response: httpx.Response) -> Any:  # pyright: ignore[reportExplicitAny]
    if not response.content:
        return None
    try:
        return orjson.loads(response.content)
    except orjson.JSONDecodeError:
        return None


class _JsonClient:
    """Shared request plumbing: JSON encoding, decoding and status checks."""

    __slots__ = ("_client", "_logger", "url")

    def __init__(
        self,
        url: str,
        *,
        timeout: float,
        transport: httpx.BaseTransport | None,
        logger: "FilteringBoundLogger",
    ) -> None:
        self.url = url
        self._logger = logger
        self._client = httpx.Client(base_url=url, timeout=timeout, transport=transport)

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        payload: Any = None,  # pyright: ignore[reportExplicitAny,reportAny]
        allow: Collection[int] = (),
    ) -> tuple[int, Any]:  # pyright: ignore[reportExplicitAny]
        """Send a request and decode its JSON body.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            params: Query parameters.
            payload: Value serialized as the JSON request body.
            allow: Non-2xx status codes returned instead of raised.

        Returns:
            Tuple of (status code, decoded body or None).

        Raises:
            ServerApiError: If the status is neither 2xx nor allowed.
            httpx.HTTPError: If the request fails in transport.
        """
        content = None if payload is None else orjson.dumps(payload)
        headers = {"Content-Type": "application/json"} if content is not None else None
        response = self._client.request(method, path, params=params, content=content, headers=headers)
        self._logger.debug("api_request", method=method, path=path, status=response.status_code)

        if not response.is_success and response.status_code not in allow:
            msg = f"{method} {path} answered {response.status_code}"
            raise ServerApiError(msg, status_code=response.status_code, body=response.text)
        return response.status_code, _decode(response)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


@final
class ServerClient(_JsonClient):
    """Client for the server's ``/v2`` REST API.

    Attributes:
        url: Base URL of the server.
        base_path: Group every test workload lives in.
    """

    __slots__ = ("base_path",)

    def __init__(
        self,
        url: str,
        base_path: "str | PathId" = "/",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Base URL of the server, e.g. ``http://localhost:8080``.
            base_path: Group every test workload lives in.
            timeout: Per-request timeout in seconds.
            transport: Custom httpx transport, for tests.
        """
        super().__init__(
            url,
            timeout=timeout,
            transport=transport,
            logger=create_harness_logger(f"api:{url}"),
        )
        self.base_path = PathId.parse(base_path).to_root_path()

    def subscribe(self, callback_url: str) -> RestResult[None]:
        status, body = self._request(
            "POST", "/v2/eventSubscriptions", params={"callbackUrl": callback_url}
        )
        return RestResult(status, None, body)

    def unsubscribe(self, callback_url: str) -> RestResult[None]:
        status, body = self._request(
            "DELETE", "/v2/eventSubscriptions", params={"callbackUrl": callback_url}
        )
        return RestResult(status, None, body)

    def list_subscribers(self) -> RestResult[SubscriberList]:
        status, body = self._request("GET", "/v2/eventSubscriptions")
        return RestResult(status, SubscriberList.model_validate(body or {}), body)

    def create_app(self, app: AppDefinition) -> RestResult[AppDefinition | None]:
        status, body = self._request("POST", "/v2/apps", payload=app.to_payload())
        value = AppDefinition.from_payload(body) if isinstance(body, dict) else None
        return RestResult(status, value, body)

    def delete_group(
        self, path: PathId, *, force: bool = False
    ) -> RestResult[DeploymentResult | None]:
        """Delete a group; a missing group answers 404 with no value."""
        params = {"force": "true"} if force else None
        status, body = self._request(
            "DELETE", f"/v2/groups{path.to_root_path()}", params=params, allow=(404,)
        )
        value = DeploymentResult.model_validate(body) if status != 404 else None  # noqa: PLR2004
        return RestResult(status, value, body)

    def list_apps_in_base_group(self) -> RestResult[list[AppDefinition]]:
        status, body = self._request("GET", "/v2/apps")
        payloads: list[dict[str, Any]] = (body or {}).get("apps", [])  # pyright: ignore[reportExplicitAny]
        apps = [
            AppDefinition.from_payload(payload)
            for payload in payloads
            if PathId.parse(str(payload.get("id", ""))).is_within(self.base_path)
        ]
        return RestResult(status, apps, body)

    def list_groups_in_base_group(self) -> RestResult[list[str]]:
        status, body = self._request("GET", f"/v2/groups{self.base_path}", allow=(404,))
        groups: list[dict[str, Any]] = (body or {}).get("groups", [])  # pyright: ignore[reportExplicitAny]
        return RestResult(status, [str(group.get("id", "")) for group in groups], body)

    def tasks(self, app_id: PathId) -> RestResult[list[Task]]:
        status, body = self._request("GET", f"/v2/apps{app_id.to_root_path()}/tasks")
        payloads: list[dict[str, Any]] = (body or {}).get("tasks", [])  # pyright: ignore[reportExplicitAny]
        return RestResult(status, [Task.model_validate(task) for task in payloads], body)


@final
class ClusterClient(_JsonClient):
    """Client for the resource cluster master's state endpoint."""

    __slots__ = ()

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(
            url,
            timeout=timeout,
            transport=transport,
            logger=create_harness_logger(f"cluster:{url}"),
        )

    def state(self) -> RestResult[ClusterState]:
        status, body = self._request("GET", "/state")
        return RestResult(status, ClusterState.model_validate(body or {}), body)
