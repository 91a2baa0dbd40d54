"""
Custom Exception Classes for the EquipSync Controller

Hierarchical exception structure for error handling across services.
Hardware faults are not exceptions: they are recorded as CommStatus.FAULT
on the live state.
"""


class EquipSyncError(Exception):
    """Base exception for all EquipSync controller errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ConfigError(EquipSyncError):
    """Configuration-related errors"""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(f"Config Error: {message}", recoverable)


class EquipmentError(EquipSyncError):
    """Errors raised against a single equipment unit"""

    def __init__(
        self,
        message: str,
        equipment_id: int | None = None,
        equipment_name: str | None = None,
        recoverable: bool = True,
    ):
        self.equipment_id = equipment_id
        self.equipment_name = equipment_name
        super().__init__(message, recoverable)


class EquipmentNotFoundError(EquipmentError):
    """No unit with the requested id is registered in the collection"""

    def __init__(
        self,
        equipment_id: int | None,
        desired: bool | None = None,
        equipment_name: str | None = None,
        kind: str = "equipment",
    ):
        self.desired = desired
        self.kind = kind
        label = f"{equipment_id}-{equipment_name}" if equipment_name else f"{equipment_id}"
        message = f"{kind} {label} could not be found"
        if desired is not None:
            message += f" to set the state to {desired}"
        super().__init__(message, equipment_id, equipment_name, recoverable=True)


class DeviceError(EquipSyncError):
    """Errors talking to a bound smart-relay device"""

    def __init__(
        self,
        message: str,
        connection_id: str | None = None,
        device_binding: str | None = None,
        recoverable: bool = True,
    ):
        self.connection_id = connection_id
        self.device_binding = device_binding
        super().__init__(f"Device Error: {message}", recoverable)


class DeviceCommunicationError(DeviceError):
    """Transport failure reaching the device service"""

    def __init__(
        self,
        message: str,
        connection_id: str | None = None,
        device_binding: str | None = None,
        path: str | None = None,
    ):
        self.path = path
        super().__init__(message, connection_id, device_binding, recoverable=True)

