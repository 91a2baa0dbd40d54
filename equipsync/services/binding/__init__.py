"""
Binding Service - Smart-relay equipment synchronization

Responsibilities:
- Push on/off changes to bound devices, committing only on success
- Poll bound devices to keep comm status current
- Manage creation, lookup and teardown of equipment units
"""

from .collection import BindableEquipment, EquipmentCollection
from .control_panel import ControlPanel
from .device_client import DeviceResponse, DeviceServiceClient, HardwareStatus, ResponseStatus
from .equipment import ControlledEquipment, PanelLink
from .live_state import CommStatus, LiveState, LiveStateStore
from .service import BindingService

__all__ = [
    "BindableEquipment",
    "BindingService",
    "CommStatus",
    "ControlPanel",
    "ControlledEquipment",
    "DeviceResponse",
    "DeviceServiceClient",
    "EquipmentCollection",
    "HardwareStatus",
    "LiveState",
    "LiveStateStore",
    "PanelLink",
    "ResponseStatus",
]
