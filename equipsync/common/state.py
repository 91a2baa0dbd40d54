"""
Shared State Management

File-based state sharing using JSON files with file locking.
The binding service publishes its live equipment state and health here
so that other processes (command surface, dashboards) can read them.
"""

import json
import os
import threading
import time
from datetime import datetime, timezone
from pathlib import Path

_DEFAULT_STATE_DIR = "/opt/equipsync/data/state"


def get_state_dir() -> Path:
    """State directory, overridable with EQUIPSYNC_STATE_DIR"""
    if "EQUIPSYNC_STATE_DIR" in os.environ:
        return Path(os.environ["EQUIPSYNC_STATE_DIR"])
    if os.name == "nt":
        return Path(__file__).parent.parent.parent / "data" / "state"
    return Path(_DEFAULT_STATE_DIR)


class SharedState:
    """
    Simple file-based state sharing between processes.

    Uses file locking on Unix systems for safe concurrent access.
    On Windows, uses a write-and-rename approach.
    """

    _cache: dict[str, tuple[dict, float]] = {}
    _cache_ttl: float = 0.1  # 100ms cache
    _lock = threading.Lock()

    @classmethod
    def _get_path(cls, key: str) -> Path:
        return get_state_dir() / f"{key}.json"

    @classmethod
    def write(cls, key: str, data: dict) -> None:
        """
        Write state with file locking (Unix) or atomic rename (Windows).

        Args:
            key: State key (becomes filename without .json)
            data: Dictionary to serialize as JSON
        """
        path = cls._get_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        data_with_meta = {
            **data,
            "_updated_at": datetime.now(timezone.utc).isoformat(),
        }

        if os.name == "nt":
            temp_path = path.with_suffix(".tmp")
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data_with_meta, f, indent=2)
            temp_path.replace(path)
        else:
            import fcntl
            with open(path, "w", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    json.dump(data_with_meta, f, indent=2)
                    f.flush()
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)

        with cls._lock:
            cls._cache[key] = (data_with_meta, time.time())

    @classmethod
    def read(cls, key: str, use_cache: bool = True) -> dict:
        """
        Read state from file with optional caching.

        Returns:
            Dictionary from JSON file, or empty dict if not found
        """
        if use_cache:
            with cls._lock:
                if key in cls._cache:
                    data, timestamp = cls._cache[key]
                    if time.time() - timestamp < cls._cache_ttl:
                        return data

        path = cls._get_path(key)
        if not path.exists():
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError):
            return {}

        with cls._lock:
            cls._cache[key] = (data, time.time())
        return data

    @classmethod
    def delete(cls, key: str) -> bool:
        """Delete state file. Returns False if it did not exist."""
        path = cls._get_path(key)

        with cls._lock:
            cls._cache.pop(key, None)

        if path.exists():
            path.unlink()
            return True
        return False

    @classmethod
    def clear_cache(cls) -> None:
        with cls._lock:
            cls._cache.clear()


def set_live_state(snapshot: dict) -> None:
    """Publish the live equipment state snapshot"""
    SharedState.write("live_state", snapshot)


def get_live_state() -> dict:
    """Latest published live equipment state"""
    return SharedState.read("live_state")


def set_service_health(service: str, status: dict) -> None:
    """Update health status for a service"""
    health = SharedState.read("service_health", use_cache=False)
    health[service] = {
        **status,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    SharedState.write("service_health", health)


def get_service_health() -> dict:
    """Get service health status"""
    return SharedState.read("service_health")
