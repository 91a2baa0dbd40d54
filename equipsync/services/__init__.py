"""
EquipSync Controller Services

- Binding Service - pushes equipment state to smart-relay devices,
  polls them for comm faults, and tears everything down on shutdown
"""
