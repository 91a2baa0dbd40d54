"""
Live State Store

Published, externally observable state of every equipment unit, keyed
by kind and id. Units mutate their own entry; everything else reads.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable

from equipsync.common.logging_setup import get_service_logger

logger = get_service_logger("binding.state")


class CommStatus(IntEnum):
    """Last known communication health of a unit"""
    OK = 0
    FAULT = 1


@dataclass
class LiveState:
    """On/off and comm status of one unit"""
    id: int
    name: str = ""
    is_on: bool = False
    comm_status: CommStatus = CommStatus.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "isOn": self.is_on,
            "commStatus": int(self.comm_status),
        }


class LiveStateStore:
    """
    In-memory live state, optionally mirrored through a publish hook.

    The hook receives the full snapshot after every change that actually
    alters a value. Hook failures are logged, never raised to the unit
    that made the change.
    """

    def __init__(self, publish: Callable[[dict], None] | None = None):
        self._states: dict[str, dict[int, LiveState]] = {}
        self._publish = publish

    def get(self, kind: str, equipment_id: int, name: str = "") -> LiveState:
        """Return the entry for an id, creating a default one if missing"""
        states = self._states.setdefault(kind, {})
        state = states.get(equipment_id)
        if state is None:
            state = LiveState(id=equipment_id, name=name)
            states[equipment_id] = state
        return state

    def find(self, kind: str, equipment_id: int) -> LiveState | None:
        return self._states.get(kind, {}).get(equipment_id)

    def set_on(self, kind: str, equipment_id: int, is_on: bool) -> None:
        state = self.get(kind, equipment_id)
        if state.is_on != is_on:
            state.is_on = is_on
            self._changed()

    def set_comm_status(self, kind: str, equipment_id: int, status: CommStatus) -> None:
        state = self.get(kind, equipment_id)
        if state.comm_status != status:
            state.comm_status = status
            self._changed()

    def set_name(self, kind: str, equipment_id: int, name: str) -> None:
        state = self.get(kind, equipment_id)
        if state.name != name:
            state.name = name
            self._changed()

    def remove(self, kind: str, equipment_id: int) -> None:
        if self._states.get(kind, {}).pop(equipment_id, None) is not None:
            self._changed()

    def snapshot(self) -> dict[str, list[dict]]:
        return {
            kind: [s.to_dict() for s in states.values()]
            for kind, states in self._states.items()
        }

    def _changed(self) -> None:
        if self._publish is None:
            return
        try:
            self._publish(self.snapshot())
        except Exception as e:
            logger.error(f"Error publishing live state: {e}")
