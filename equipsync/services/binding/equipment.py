"""
Controlled Equipment

One equipment output, either virtual (state kept locally) or bound to a
smart-relay device through a (connection_id, device_binding) pair.
"""

from typing import Any, Protocol

from equipsync.common.config import ControllerSettings, EquipmentConfig
from equipsync.common.logging_setup import get_service_logger, log_comm_status, log_state_write

from .device_client import DeviceResponse, HardwareStatus
from .live_state import CommStatus, LiveState, LiveStateStore

logger = get_service_logger("binding.equipment")

# Keys of set_equipment() data that map onto EquipmentConfig fields
_EDITABLE_FIELDS = ("name", "connection_id", "device_binding")


class PanelLink(Protocol):
    """What a unit needs from its owning control panel. Non-owning."""

    settings: ControllerSettings
    state_store: LiveStateStore

    async def get_device_service(self, connection_id: str, path: str) -> DeviceResponse: ...

    async def put_device_service(
        self, connection_id: str, path: str, body: dict[str, Any]
    ) -> DeviceResponse: ...

    def log_data(self, filename: str, data: Any) -> None: ...


class ControlledEquipment:
    """
    A switchable output driven through the device service.

    is_on only changes after a confirmed 200 from the device (bound) or
    unconditionally (virtual). comm_status is maintained by
    validate_setup() and is independent of state writes.
    """

    def __init__(self, panel: PanelLink, config: EquipmentConfig):
        self.panel = panel
        self.config = config

    @property
    def id(self) -> int:
        return self.config.id

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def kind(self) -> str:
        return self.config.kind

    @property
    def is_bound(self) -> bool:
        return self.config.is_bound

    @property
    def live_state(self) -> LiveState:
        return self.panel.state_store.get(self.kind, self.id, self.name)

    def __repr__(self) -> str:
        binding = (
            f"{self.config.connection_id}/{self.config.device_binding}"
            if self.is_bound else "virtual"
        )
        return f"<ControlledEquipment {self.kind} {self.id}-{self.name} {binding}>"

    async def set_equipment(self, data: dict[str, Any] | None) -> None:
        """Apply name/binding changes from a create or update request."""
        if not data:
            return
        try:
            changed = []
            for key in _EDITABLE_FIELDS:
                if key in data and getattr(self.config, key) != data[key]:
                    setattr(self.config, key, data[key] or ("" if key == "name" else None))
                    changed.append(key)
            if "name" in changed:
                self.panel.state_store.set_name(self.kind, self.id, self.name)
            # Virtual units are never faulted
            if not self.is_bound and {"connection_id", "device_binding"} & set(changed):
                self._apply_comm_status(CommStatus.OK)
            if changed:
                logger.info(f"Updated {self.kind} {self.id}-{self.name}: {', '.join(changed)}")
        except Exception as e:
            logger.error(f"set_equipment {self.kind} {self.id}: {e}")
            raise

    async def set_state(self, desired: bool) -> DeviceResponse:
        """
        Drive the output to the desired state.

        Returns:
            The device response (virtual units get a synthetic 200).

        Raises:
            DeviceCommunicationError: the device service could not be reached
        """
        store = self.panel.state_store
        try:
            if desired != self.live_state.is_on:
                logger.info(f"Setting {self.kind} {self.name} to {desired}")

            if not self.is_bound:
                store.set_on(self.kind, self.id, desired)
                return DeviceResponse.success()

            body: dict[str, Any] = {"isOn": desired}
            if desired:
                body["latch"] = self.panel.settings.latch_ms

            res = await self.panel.put_device_service(
                self.config.connection_id,
                f"/state/device/{self.config.device_binding}",
                body,
            )
            if res.ok:
                store.set_on(self.kind, self.id, desired)
            log_state_write(logger, self.name, desired, res.status.code, res.ok)
            return res
        except Exception as e:
            logger.error(f"Error setting {self.kind} state {self.id}-{self.name} to {desired}: {e}")
            raise

    async def check_hardware_status(self) -> HardwareStatus:
        """Ask the device for its status. Anything but a clean answer is a fault."""
        if not self.is_bound:
            return HardwareStatus(has_fault=False)
        try:
            res = await self.panel.get_device_service(
                self.config.connection_id,
                f"/status/device/{self.config.device_binding}",
            )
        except Exception as e:
            logger.error(f"{self.kind} {self.name} check_hardware_status: {e}")
            return HardwareStatus(has_fault=True, detail=str(e))

        if not res.ok:
            return HardwareStatus(has_fault=True, detail=res.to_dict())
        body = res.body if isinstance(res.body, dict) else {}
        return HardwareStatus(has_fault=bool(body.get("hasFault", False)), detail=body)

    async def validate_setup(self) -> None:
        """Refresh comm_status. Virtual units are never faulted."""
        faulted = False
        reason = None
        if self.is_bound:
            try:
                stat = await self.check_hardware_status()
                faulted = stat.has_fault
                if faulted:
                    reason = str(stat.detail) if stat.detail is not None else None
            except Exception as e:
                logger.error(f"Error checking {self.kind} hardware {self.name}: {e}")
                faulted = True
                reason = str(e)
        self._apply_comm_status(CommStatus.FAULT if faulted else CommStatus.OK, reason)

    def _apply_comm_status(self, status: CommStatus, reason: str | None = None) -> None:
        previous = self.live_state.comm_status
        self.panel.state_store.set_comm_status(self.kind, self.id, status)
        if previous != status:
            log_comm_status(logger, self.name, status == CommStatus.FAULT, reason)

    async def close(self) -> None:
        """Turn the output off. Never raises, so shutdown is not blocked."""
        try:
            await self.set_state(False)
        except Exception as e:
            logger.error(f"{self.kind} {self.id}-{self.name} close: {e}")

    def log_data(self, filename: str, data: Any) -> None:
        self.panel.log_data(filename, data)
