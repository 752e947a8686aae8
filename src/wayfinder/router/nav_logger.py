# nav_logger.py
# Handles all durable storage for the navigation system.
# Keeps exactly one cached "last route" blob as JSON.

import json
import logging
import os
from datetime import datetime
from typing import Dict, Optional, Protocol

from .errors import MalformedRouteError, StorageReadError
from .models import RouteModel
from .nav_config import NavConfig

# Standard Python logger — configure at app entry point if needed
logger = logging.getLogger(__name__)

STORAGE_FORMAT_VERSION = 1


# ---------------------------------------------------------------------------
# Storage backends
# ---------------------------------------------------------------------------

class Storage(Protocol):
    """Byte-oriented key/value store."""

    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...


class MemoryStorage:
    """Process-local storage, mainly for tests and headless runs."""

    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)


class FileStorage:
    """
    One file per key inside a directory.

    Writes go to a temporary file first and are moved into place, so a reader
    never sees a half-written blob.

    Args:
        directory: Where the files live; created if missing.
    """

    def __init__(self, directory: str) -> None:
        self.directory = directory
        os.makedirs(self.directory, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, key)

    def get(self, key: str) -> Optional[bytes]:
        try:
            with open(self._path(key), "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "wb") as f:
            f.write(value)
        os.replace(tmp_path, path)


# ---------------------------------------------------------------------------
# Last-route cache
# ---------------------------------------------------------------------------

class RouteStore:
    """
    Persists the most recent route and restores it at startup.

    Args:
        storage: Any object with get(key) / set(key, bytes).
        config:  NavConfig instance; the key is ``config.route_filename``.
    """

    def __init__(self, storage: Storage, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self.storage = storage

    @classmethod
    def on_disk(cls, config: Optional[NavConfig] = None) -> "RouteStore":
        config = config or NavConfig()
        return cls(FileStorage(config.data_dir), config)

    @property
    def key(self) -> str:
        return self.config.route_filename

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, route: RouteModel) -> bool:
        """
        Overwrite the cached route.

        Returns:
            True on success, False on failure.
        """
        data = {
            "version": STORAGE_FORMAT_VERSION,
            "saved_at": datetime.now().isoformat(),
            "route": route.to_dict(),
        }
        try:
            self.storage.set(self.key, json.dumps(data, ensure_ascii=False).encode("utf-8"))
            logger.info(f"Route saved under '{self.key}' ({len(route.geometry)} points).")
            return True
        except OSError as e:
            logger.error(f"Failed to save route under '{self.key}': {e}")
            return False

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read(self) -> RouteModel:
        """
        Decode the cached route.

        Raises:
            StorageReadError: nothing cached, unreadable, or not a valid route.
        """
        try:
            raw = self.storage.get(self.key)
        except OSError as e:
            raise StorageReadError(f"Could not read '{self.key}': {e}") from e
        if raw is None:
            raise StorageReadError(f"No route cached under '{self.key}'.")

        try:
            data = json.loads(raw.decode("utf-8"))
            if data.get("version") != STORAGE_FORMAT_VERSION:
                raise StorageReadError(f"Unsupported cache version: {data.get('version')!r}")
            return RouteModel.from_dict(data["route"])
        except StorageReadError:
            raise
        except (
            UnicodeDecodeError,
            ValueError,
            KeyError,
            TypeError,
            AttributeError,
            IndexError,
            MalformedRouteError,
        ) as e:
            raise StorageReadError(f"Cached route under '{self.key}' is malformed: {e}") from e

    def load(self) -> Optional[RouteModel]:
        """
        Load the cached route, treating any failure as "no route".

        Returns:
            RouteModel, or None if absent or malformed.
        """
        try:
            route = self.read()
        except StorageReadError as e:
            logger.info(f"No usable cached route: {e}")
            return None
        logger.info(f"Route restored from '{self.key}' ({len(route.geometry)} points).")
        return route
