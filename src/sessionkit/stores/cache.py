"""JSON snapshot cache for store contents."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotCache(Generic[T]):
    """
    One JSON array of items per store.

    Writes replace the whole file atomically (temp file in the same directory,
    then os.replace). Reads are permissive: a missing, unreadable or undecodable
    file is a cache miss, never an error.

    Example:
        >>> cache = SnapshotCache(settings.cache_dir / "help_texts.json", HelpText)
        >>> cache.write(items)
        >>> cache.read()
    """

    def __init__(self, path: Path, item_type: type[T]):
        self.path = path
        self._adapter = TypeAdapter(list[item_type])

    def read(self) -> list[T] | None:
        """Return cached items, or None on a cache miss."""
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Unable to read cache file {self.path}: {e}")
            return None

        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(
                f"Discarding undecodable cache file {self.path}: {e.error_count()} error(s)",
                extra={"error_type": "cache_decode_failed"},
            )
            return None

    def write(self, items: list[T]) -> None:
        """
        Persist items, replacing the previous snapshot.

        Raises:
            OSError: If the snapshot cannot be written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = self._adapter.dump_json(items)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
