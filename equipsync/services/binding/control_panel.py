"""
Control Panel

Aggregate root for the binding layer. Owns one EquipmentCollection per
equipment kind and is the handle every unit uses for device calls and
diagnostic data logging.
"""

from typing import Any, Callable

from equipsync.common.config import ControllerSettings, EquipmentConfig
from equipsync.common.exceptions import EquipmentNotFoundError
from equipsync.common.logging_setup import get_service_logger, log_data_record

from .collection import EquipmentCollection
from .device_client import DeviceResponse, DeviceServiceClient
from .equipment import ControlledEquipment, PanelLink
from .live_state import LiveStateStore

logger = get_service_logger("binding.panel")
data_logger = get_service_logger("binding.data")


class ControlPanel:
    """
    Owns the equipment collections and their shared collaborators.

    The device client and live state store are injected so the panel can
    run against fakes in tests.
    """

    def __init__(
        self,
        settings: ControllerSettings,
        device_client: DeviceServiceClient,
        state_store: LiveStateStore,
        factory: Callable[[PanelLink, EquipmentConfig], ControlledEquipment] = ControlledEquipment,
    ):
        self.settings = settings
        self.device_client = device_client
        self.state_store = state_store
        self._factory = factory
        self.collections: dict[str, EquipmentCollection[ControlledEquipment]] = {}

    def add_collection(self, kind: str) -> EquipmentCollection[ControlledEquipment]:
        """Return the collection for a kind, creating it if needed"""
        collection = self.collections.get(kind)
        if collection is None:
            collection = EquipmentCollection(
                panel=self,
                kind=kind,
                factory=self._factory,
                polling_interval_ms=self.settings.polling_interval_ms,
            )
            self.collections[kind] = collection
        return collection

    def get_collection(self, kind: str) -> EquipmentCollection[ControlledEquipment] | None:
        return self.collections.get(kind)

    async def init_from_config(self, equipment: dict[str, list[EquipmentConfig]]) -> None:
        """Build every collection from its config entries"""
        for kind, configs in equipment.items():
            await self.add_collection(kind).init_from_config(configs)
        logger.info(
            f"Control panel initialized: {self.get_counts()}",
            extra={"counts": self.get_counts()},
        )

    def start_polling(self, immediate: bool = False) -> None:
        for collection in self.collections.values():
            collection.start_polling(immediate=immediate)

    async def set_state(self, kind: str, equipment_id: int, desired: bool) -> DeviceResponse:
        collection = self.collections.get(kind)
        if collection is None:
            raise EquipmentNotFoundError(equipment_id, desired, kind=kind)
        return await collection.set_state(equipment_id, desired)

    async def create_or_update(
        self,
        kind: str,
        config: EquipmentConfig,
        data: dict[str, Any] | None = None,
    ) -> None:
        config.kind = kind
        await self.add_collection(kind).get_or_create(config, data)

    async def get_device_service(self, connection_id: str, path: str) -> DeviceResponse:
        return await self.device_client.get(connection_id, path)

    async def put_device_service(
        self, connection_id: str, path: str, body: dict[str, Any]
    ) -> DeviceResponse:
        return await self.device_client.put(connection_id, path, body)

    def log_data(self, filename: str, data: Any) -> None:
        log_data_record(data_logger, filename, data)

    def get_counts(self) -> dict[str, int]:
        return {kind: len(c) for kind, c in self.collections.items()}

    def get_stats(self) -> dict[str, Any]:
        return {
            kind: {
                "count": len(c),
                "poll": c.poll_timer.get_stats(),
            }
            for kind, c in self.collections.items()
        }

    async def close(self) -> None:
        """Close every collection (outputs off), then the device client."""
        for kind, collection in self.collections.items():
            logger.info(f"Closing {kind}")
            await collection.close_all()
        try:
            await self.device_client.close()
        except Exception as e:
            logger.error(f"Error closing device client: {e}")
