"""
Equipment Collection

Ordered registry of equipment units of one kind, keyed by id. Owns the
re-arming poll timer that revalidates comm status for every member.

The collection is generic over anything satisfying BindableEquipment, so
the same container serves circuits, pumps, heaters and so on.
"""

import asyncio
from typing import Any, Callable, Generic, Iterable, Iterator, Protocol, TypeVar

from equipsync.common.config import DEFAULT_POLLING_INTERVAL_MS, EquipmentConfig
from equipsync.common.exceptions import EquipmentNotFoundError
from equipsync.common.logging_setup import get_service_logger
from equipsync.common.scheduler import RearmingTimer

from .device_client import DeviceResponse
from .equipment import PanelLink

logger = get_service_logger("binding.collection")


class BindableEquipment(Protocol):
    """Capabilities the collection relies on: identifiable, closable, device-bindable"""

    @property
    def id(self) -> int: ...

    @property
    def name(self) -> str: ...

    async def set_state(self, desired: bool) -> DeviceResponse: ...

    async def set_equipment(self, data: dict[str, Any] | None) -> None: ...

    async def validate_setup(self) -> None: ...

    async def close(self) -> None: ...


E = TypeVar("E", bound=BindableEquipment)


class EquipmentCollection(Generic[E]):
    """
    Registry of equipment units with polling and teardown.

    Concurrent set_state() calls for the same id are not serialized:
    the last device response to arrive decides the committed state.
    """

    def __init__(
        self,
        panel: PanelLink,
        kind: str,
        factory: Callable[[PanelLink, EquipmentConfig], E],
        polling_interval_ms: int | None = None,
    ):
        self.panel = panel
        self.kind = kind
        self.polling_interval_ms = polling_interval_ms
        self._factory = factory
        self._items: list[E] = []
        self._poll_timer = RearmingTimer(self.poll_tick, name=f"{kind}.poll")
        self._closed = False

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(list(self._items))

    def __contains__(self, equipment_id: object) -> bool:
        return any(unit.id == equipment_id for unit in self._items)

    @property
    def poll_timer(self) -> RearmingTimer:
        return self._poll_timer

    @property
    def poll_interval_seconds(self) -> float:
        return (self.polling_interval_ms or DEFAULT_POLLING_INTERVAL_MS) / 1000.0

    def find(self, equipment_id: int) -> E | None:
        return next((unit for unit in self._items if unit.id == equipment_id), None)

    async def init_from_config(self, configs: Iterable[EquipmentConfig]) -> None:
        """Rebuild the collection from config, keeping only master entries."""
        try:
            self._items.clear()
            self._closed = False
            for config in configs:
                if config.master != 1:
                    continue
                if self.find(config.id) is not None:
                    logger.warning(f"Skipping duplicate {self.kind} id {config.id}-{config.name}")
                    continue
                logger.info(f"Initializing {self.kind} {config.name}")
                config.kind = self.kind
                self._items.append(self._factory(self.panel, config))
        except Exception as e:
            logger.error(f"{self.kind} init_from_config: {e}")
            raise

    async def get_or_create(self, config: EquipmentConfig, data: dict[str, Any] | None = None) -> E:
        """Create-or-update: new units get the create hook, existing ones the update hook."""
        try:
            unit = self.find(config.id)
            if unit is None:
                config.master = 1
                config.kind = self.kind
                unit = self._factory(self.panel, config)
                self._items.append(unit)
                await unit.set_equipment(data)
                logger.debug(f"A {self.kind} was not found for id #{config.id}, creating {self.kind}")
            else:
                await unit.set_equipment(data)
            return unit
        except Exception as e:
            logger.error(f"{self.kind} get_or_create {config.id}: {e}")
            raise

    async def create_or_lookup(self, config: EquipmentConfig) -> E:
        """Return the unit for config.id, creating it without any update hook."""
        try:
            unit = self.find(config.id)
            if unit is None:
                config.master = 1
                config.kind = self.kind
                unit = self._factory(self.panel, config)
                self._items.append(unit)
            return unit
        except Exception as e:
            logger.error(f"{self.kind} create_or_lookup {config.id}: {e}")
            raise

    async def set_state(self, equipment_id: int, desired: bool) -> DeviceResponse:
        """
        Set a unit on or off.

        Raises:
            EquipmentNotFoundError: no unit with this id
            DeviceCommunicationError: the device could not be reached
        """
        unit = self.find(equipment_id)
        if unit is None:
            known = self.panel.state_store.find(self.kind, equipment_id)
            err = EquipmentNotFoundError(
                equipment_id,
                desired,
                equipment_name=known.name if known else None,
                kind=self.kind,
            )
            logger.warning(str(err))
            raise err
        try:
            return await unit.set_state(desired)
        except Exception as e:
            logger.error(f"{self.kind} set_state {equipment_id}-{unit.name}: {e}")
            raise

    async def revalidate(self) -> None:
        """Re-check hardware status of every unit. One unit's failure never stops the rest."""
        units = list(self._items)
        results = await asyncio.gather(
            *(unit.validate_setup() for unit in units),
            return_exceptions=True,
        )
        for unit, result in zip(units, results):
            if isinstance(result, Exception):
                logger.error(f"Error validating {self.kind} {unit.id}-{unit.name}: {result}")

    def start_polling(self, immediate: bool = False) -> None:
        """Arm the first poll tick."""
        self._closed = False
        self._poll_timer.schedule(0 if immediate else self.poll_interval_seconds)

    async def poll_tick(self) -> None:
        """
        One revalidation pass, then re-arm.

        The timer is re-armed in a finally block: an error in the pass is
        logged and raised to the caller but never stops future polling.
        """
        self._poll_timer.cancel()
        try:
            await self.revalidate()
        except Exception as e:
            logger.error(f"Error polling {self.kind}: {e}")
            raise
        finally:
            if not self._closed:
                self._poll_timer.schedule(self.poll_interval_seconds)

    async def close_all(self) -> None:
        """
        Stop polling, then close every unit from the tail backward.

        A unit whose close raises is logged and left in the collection;
        every other unit is closed and removed, along with its live state.
        """
        try:
            self._closed = True
            await self._poll_timer.stop()
            for unit in reversed(list(self._items)):
                try:
                    await unit.close()
                    self._items.remove(unit)
                    self.panel.state_store.remove(self.kind, unit.id)
                except Exception as e:
                    logger.error(f"Error stopping {self.kind} {unit.id}-{unit.name}: {e}")
        except Exception as e:
            logger.error(f"Error closing {self.kind}: {e}")
