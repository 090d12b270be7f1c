"""File-based storage backend.

Implements StorageBackend on the local filesystem. Each key maps to one
file named ``<key>.json`` inside an application-support directory that
is resolved once, in setup().

Usage:
    storage = FileStorageBackend("/path/to/app-support")
    storage.setup()
    storage.write("database", text)
    text = storage.read("database")

Writes go to a temporary file in the same directory which is then
renamed over the target, so readers see either the old document or the
new one, never a partial write.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from record_store.domain.errors import StorageNotReadyError
from record_store.infrastructure.config import get_config
from record_store.infrastructure.logging import get_logger

logger = get_logger(__name__)


class FileStorageBackend:
    """File-based implementation of StorageBackend.

    Attributes:
        base_path: Directory holding dataset files (None until setup()).
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        suffix: str | None = None,
        fsync: bool | None = None,
    ) -> None:
        """Initialize file storage.

        Args:
            directory: Storage directory. Defaults to the configured
                ``storage.data_dir`` when setup() runs.
            suffix: File suffix (default from config, ``.json``).
            fsync: fsync files before renaming (default from config).
        """
        self._directory = Path(directory) if directory is not None else None
        self._suffix = suffix
        self._fsync = fsync
        self._base_path: Path | None = None

    @property
    def base_path(self) -> Path | None:
        return self._base_path

    def setup(self) -> None:
        """Resolve and create the storage directory.

        Configuration is read only for values not given to the constructor.
        """
        directory = self._directory
        if directory is None or self._suffix is None or self._fsync is None:
            storage_config = get_config().storage
            if directory is None:
                directory = storage_config.data_dir
            if self._suffix is None:
                self._suffix = storage_config.file_suffix
            if self._fsync is None:
                self._fsync = storage_config.fsync

        directory = directory.expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        self._base_path = directory
        logger.debug("file_storage_ready", path=str(directory))

    def _file_path(self, key: str) -> Path:
        if self._base_path is None:
            raise StorageNotReadyError("StorageBackend not initialized. Call setup() first.")
        # Sanitize key to be filesystem-safe
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._base_path / f"{safe_key}{self._suffix}"

    def read(self, key: str) -> str | None:
        path = self._file_path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("file_storage_read_failed", path=str(path), error=str(e))
            return None

    def write(self, key: str, data: str) -> None:
        path = self._file_path(key)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                if self._fsync:
                    os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("file_storage_written", path=str(path), bytes=len(data))

    def exists(self, key: str) -> bool:
        return self._file_path(key).exists()

    def delete(self, key: str) -> None:
        path = self._file_path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("file_storage_delete_failed", path=str(path), error=str(e))

    def list_keys(self) -> list[str]:
        """List keys that currently have a file."""
        if self._base_path is None:
            raise StorageNotReadyError("StorageBackend not initialized. Call setup() first.")
        return sorted(p.name[: -len(self._suffix)] for p in self._base_path.glob(f"*{self._suffix}"))
