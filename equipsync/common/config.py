"""
Configuration Dataclasses

Type-safe configuration structures for the controller.
Equipment definitions are read from a YAML file that is the
source of truth; this layer never writes them back.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

DEFAULT_POLLING_INTERVAL_MS = 10000
DEFAULT_LATCH_MS = 7000


class ConnectionProtocol(str, Enum):
    """Transport used to reach a device service"""
    HTTP = "http"
    HTTPS = "https"


@dataclass
class ConnectionConfig:
    """A device-service endpoint that bound equipment talks through"""
    id: str
    name: str = ""
    protocol: ConnectionProtocol = ConnectionProtocol.HTTP
    host: str = "localhost"
    port: int = 8080
    base_path: str = ""
    timeout_s: float | None = None  # None = use ControllerSettings.request_timeout_s

    @property
    def base_url(self) -> str:
        path = self.base_path.rstrip("/")
        if path and not path.startswith("/"):
            path = "/" + path
        return f"{self.protocol.value}://{self.host}:{self.port}{path}"


@dataclass
class EquipmentConfig:
    """One configured equipment output (circuit, pump, valve...)"""
    id: int
    name: str = ""
    master: int = 0
    connection_id: str | None = None
    device_binding: str | None = None
    kind: str = "circuits"

    @property
    def is_bound(self) -> bool:
        """Both binding fields present and non-empty"""
        return bool(self.connection_id) and bool(self.device_binding)


@dataclass
class ControllerSettings:
    """Runtime settings for the binding layer"""
    polling_interval_ms: int = DEFAULT_POLLING_INTERVAL_MS
    latch_ms: int = DEFAULT_LATCH_MS
    request_timeout_s: float = 5.0
    health_port: int = 8091
    log_level: str = "INFO"


@dataclass
class ControllerConfig:
    """Complete controller configuration"""
    id: str
    name: str = ""
    settings: ControllerSettings = field(default_factory=ControllerSettings)
    connections: list[ConnectionConfig] = field(default_factory=list)
    equipment: dict[str, list[EquipmentConfig]] = field(default_factory=dict)

    def get_connection(self, connection_id: str) -> ConnectionConfig | None:
        return next((c for c in self.connections if c.id == connection_id), None)

    def get_equipment(self, kind: str) -> list[EquipmentConfig]:
        return self.equipment.get(kind, [])

    def count_equipment(self) -> dict[str, int]:
        return {kind: len(items) for kind, items in self.equipment.items()}


def _load_equipment(kind: str, data: dict) -> EquipmentConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"{kind} entry must be a mapping: {data!r}")
    if "id" not in data:
        raise ConfigError(f"{kind} entry is missing an id: {data}")
    try:
        equipment_id = int(data["id"])
    except (TypeError, ValueError):
        raise ConfigError(f"{kind} entry has a non-integer id: {data['id']!r}")

    return EquipmentConfig(
        id=equipment_id,
        name=str(data.get("name", "")),
        master=int(data.get("master", 0) or 0),
        connection_id=data.get("connection_id") or None,
        device_binding=data.get("device_binding") or None,
        kind=kind,
    )


def load_controller_config(data: dict) -> ControllerConfig:
    """Load ControllerConfig from a dictionary (e.g., parsed YAML)"""
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    controller = data.get("controller") or {}
    settings_data = data.get("settings") or {}
    if not isinstance(settings_data, dict):
        raise ConfigError("settings must be a mapping")

    try:
        settings = ControllerSettings(
            polling_interval_ms=int(settings_data.get("polling_interval_ms") or DEFAULT_POLLING_INTERVAL_MS),
            latch_ms=int(settings_data.get("latch_ms", DEFAULT_LATCH_MS)),
            request_timeout_s=float(settings_data.get("request_timeout_s", 5.0)),
            health_port=int(settings_data.get("health_port", 8091)),
            log_level=str(settings_data.get("log_level", "INFO")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid settings: {e}")

    connections = []
    for c in data.get("connections") or []:
        if not isinstance(c, dict):
            raise ConfigError(f"Connection entry must be a mapping: {c!r}")
        if not c.get("id"):
            raise ConfigError(f"Connection entry is missing an id: {c}")
        try:
            protocol = ConnectionProtocol(c.get("protocol", "http"))
        except ValueError:
            raise ConfigError(f"Connection {c['id']} has unsupported protocol {c.get('protocol')!r}")
        try:
            port = int(c.get("port", 8080))
        except (TypeError, ValueError):
            raise ConfigError(f"Connection {c['id']} has a non-integer port: {c.get('port')!r}")
        connections.append(ConnectionConfig(
            id=str(c["id"]),
            name=c.get("name", ""),
            protocol=protocol,
            host=c.get("host", "localhost"),
            port=port,
            base_path=c.get("base_path", ""),
            timeout_s=c.get("timeout_s"),
        ))

    equipment: dict[str, list[EquipmentConfig]] = {}
    for kind, entries in (data.get("equipment") or {}).items():
        items = [_load_equipment(kind, e) for e in entries or []]
        ids = [e.id for e in items]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ConfigError(f"Duplicate {kind} ids: {duplicates}")
        equipment[kind] = items

    known = {c.id for c in connections}
    for items in equipment.values():
        for e in items:
            if e.connection_id and e.connection_id not in known:
                raise ConfigError(
                    f"{e.kind} {e.id}-{e.name} references unknown connection {e.connection_id!r}"
                )

    return ControllerConfig(
        id=str(controller.get("id", "")),
        name=controller.get("name", ""),
        settings=settings,
        connections=connections,
        equipment=equipment,
    )


def load_config_file(config_path: str | Path) -> ControllerConfig:
    """
    Load configuration from a YAML file.

    Raises:
        ConfigError: file missing, unreadable or invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading configuration {path}: {e}")

    return load_controller_config(data)


def config_to_dict(config: ControllerConfig) -> dict[str, Any]:
    """Plain-dict view of a config (used by --dry-run)"""
    return {
        "controller": {"id": config.id, "name": config.name},
        "settings": vars(config.settings).copy(),
        "connections": [
            {**vars(c), "protocol": c.protocol.value} for c in config.connections
        ],
        "equipment": {
            kind: [vars(e).copy() for e in items]
            for kind, items in config.equipment.items()
        },
    }
