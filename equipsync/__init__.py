"""
EquipSync - device-binding synchronization for switchable equipment

Keeps the desired on/off state of circuits, pumps, valves and relays in
step with network-attached smart-relay devices.
"""

__version__ = "1.0.0"
