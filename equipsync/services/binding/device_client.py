"""
Device Service Client

Issues GET/PUT requests against the HTTP endpoint of a smart-relay
device service. Each request is addressed by a connection id that
resolves to a configured ConnectionConfig.

Reuses a single httpx.AsyncClient for all connections.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx

from equipsync.common.config import ConnectionConfig
from equipsync.common.exceptions import DeviceCommunicationError
from equipsync.common.logging_setup import get_service_logger

logger = get_service_logger("binding.client")


@dataclass
class ResponseStatus:
    """Status line of a device service response"""
    code: int
    message: str = ""


@dataclass
class DeviceResponse:
    """Result of a device call: status plus decoded body"""
    status: ResponseStatus
    body: Any = None

    @property
    def ok(self) -> bool:
        return self.status.code == 200

    @classmethod
    def success(cls, message: str = "Success", body: Any = None) -> "DeviceResponse":
        return cls(ResponseStatus(200, message), body)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": {"code": self.status.code, "message": self.status.message},
            "body": self.body,
        }


@dataclass
class HardwareStatus:
    """Outcome of a device status check"""
    has_fault: bool
    detail: Any = field(default=None, compare=False)


class DeviceServiceClient:
    """
    HTTP client for device services.

    Features:
    - One pooled httpx.AsyncClient for every connection
    - Per-connection base URL and timeout
    - Transport failures raised as DeviceCommunicationError
    - Non-200 responses returned, never raised, so callers keep the detail
    """

    def __init__(
        self,
        connections: Iterable[ConnectionConfig] = (),
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._connections: dict[str, ConnectionConfig] = {c.id: c for c in connections}
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def add_connection(self, connection: ConnectionConfig) -> None:
        """Register or replace a connection"""
        self._connections[connection.id] = connection

    def get_connection(self, connection_id: str) -> ConnectionConfig | None:
        return self._connections.get(connection_id)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create reusable HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout_s,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def get(self, connection_id: str, path: str) -> DeviceResponse:
        """GET a device service path on a connection"""
        return await self._request("GET", connection_id, path)

    async def put(self, connection_id: str, path: str, body: dict[str, Any]) -> DeviceResponse:
        """PUT a JSON body to a device service path on a connection"""
        return await self._request("PUT", connection_id, path, body)

    async def _request(
        self,
        method: str,
        connection_id: str,
        path: str,
        body: dict[str, Any] | None = None,
    ) -> DeviceResponse:
        connection = self._connections.get(connection_id)
        if connection is None:
            raise DeviceCommunicationError(
                f"Connection {connection_id!r} is not configured",
                connection_id=connection_id,
                path=path,
            )

        url = f"{connection.base_url}{path}"
        timeout = connection.timeout_s if connection.timeout_s is not None else self._timeout_s

        try:
            client = await self._get_client()
            response = await client.request(method, url, json=body, timeout=timeout)
        except httpx.HTTPError as e:
            logger.warning(
                f"{method} {url} failed: {e}",
                extra={"connection_id": connection_id, "path": path},
            )
            raise DeviceCommunicationError(
                f"{method} {path} on {connection_id} failed: {e}",
                connection_id=connection_id,
                path=path,
            ) from e

        result = DeviceResponse(
            status=ResponseStatus(response.status_code, response.reason_phrase),
            body=self._decode_body(response),
        )
        logger.debug(
            f"{method} {url} -> {response.status_code}",
            extra={"connection_id": connection_id, "path": path, "status_code": response.status_code},
        )
        return result

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
