"""
Shared test fixtures for the EquipSync test suite.

Provides:
- FakeDeviceClient: scripted stand-in for the device service
- StubUnit: minimal BindableEquipment for collection tests
- Panel / store / settings fixtures wired together

Async code is driven with asyncio.run() inside plain test functions.
"""

from __future__ import annotations

from typing import Any

import pytest

from equipsync.common.config import ControllerSettings, EquipmentConfig
from equipsync.common.logging_setup import set_log_level
from equipsync.common.state import SharedState
from equipsync.services.binding.control_panel import ControlPanel
from equipsync.services.binding.device_client import DeviceResponse, ResponseStatus
from equipsync.services.binding.live_state import LiveStateStore

# Keep test output clean
set_log_level("WARNING")


class FakeDeviceClient:
    """Records every call and answers with scripted responses or errors."""

    def __init__(self):
        self.calls: list[tuple[str, str, str, Any]] = []
        self.put_result: DeviceResponse | Exception = DeviceResponse.success()
        self.get_result: DeviceResponse | Exception = DeviceResponse.success(body={"hasFault": False})
        self.closed = False

    def respond_put(self, code: int, message: str = "", body: Any = None) -> None:
        self.put_result = DeviceResponse(ResponseStatus(code, message), body)

    def respond_get(self, code: int, body: Any = None, message: str = "") -> None:
        self.get_result = DeviceResponse(ResponseStatus(code, message), body)

    async def get(self, connection_id: str, path: str) -> DeviceResponse:
        self.calls.append(("GET", connection_id, path, None))
        if isinstance(self.get_result, Exception):
            raise self.get_result
        return self.get_result

    async def put(self, connection_id: str, path: str, body: dict) -> DeviceResponse:
        self.calls.append(("PUT", connection_id, path, body))
        if isinstance(self.put_result, Exception):
            raise self.put_result
        return self.put_result

    async def close(self) -> None:
        self.closed = True


class StubUnit:
    """BindableEquipment that records what the collection asks of it."""

    def __init__(self, panel, config: EquipmentConfig):
        self.panel = panel
        self.config = config
        self.updates: list[Any] = []
        self.validations = 0
        self.closed = False
        self.fail_close = False
        self.fail_validate = False
        self.close_order: list[int] | None = None

    @property
    def id(self) -> int:
        return self.config.id

    @property
    def name(self) -> str:
        return self.config.name

    async def set_state(self, desired: bool) -> DeviceResponse:
        return DeviceResponse.success(body={"isOn": desired})

    async def set_equipment(self, data) -> None:
        self.updates.append(data)

    async def validate_setup(self) -> None:
        self.validations += 1
        if self.fail_validate:
            raise RuntimeError(f"validate failed for {self.id}")

    async def close(self) -> None:
        if self.close_order is not None:
            self.close_order.append(self.id)
        if self.fail_close:
            raise RuntimeError(f"close failed for {self.id}")
        self.closed = True


def make_config(
    equipment_id: int,
    name: str | None = None,
    master: int = 1,
    connection_id: str | None = None,
    device_binding: str | None = None,
    kind: str = "circuits",
) -> EquipmentConfig:
    return EquipmentConfig(
        id=equipment_id,
        name=name or f"Circuit {equipment_id}",
        master=master,
        connection_id=connection_id,
        device_binding=device_binding,
        kind=kind,
    )


@pytest.fixture()
def settings():
    return ControllerSettings(polling_interval_ms=20, latch_ms=7000, health_port=0)


@pytest.fixture()
def device_client():
    return FakeDeviceClient()


@pytest.fixture()
def state_store():
    return LiveStateStore()


@pytest.fixture()
def panel(settings, device_client, state_store):
    return ControlPanel(settings, device_client, state_store)


@pytest.fixture()
def state_dir(tmp_path, monkeypatch):
    """Point SharedState at a temporary directory"""
    monkeypatch.setenv("EQUIPSYNC_STATE_DIR", str(tmp_path))
    SharedState.clear_cache()
    yield tmp_path
    SharedState.clear_cache()
