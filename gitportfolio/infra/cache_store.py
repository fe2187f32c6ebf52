"""
Cache store infrastructure for gitportfolio.

Backing stores for ReportCache. A store only moves text around and knows
when each entry was written; it does not interpret the payload or apply
expiry, which is ReportCache's job.

- FileCacheStore: one `<key>.json` file per entry, atomic whole-file writes
  (write to temp, then rename), written-at taken from the file mtime
- MemoryCacheStore: process-local dictionary, for tests and short-lived use
"""

import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class CacheStore:
    """
    Interface for report cache backing stores.

    Entries are (text, written_at) pairs where written_at is a POSIX
    timestamp. Writes replace an entry wholesale.
    """

    def read(self, key: str) -> Optional[Tuple[str, float]]:
        """Return (text, written_at) or None if the key is absent."""
        raise NotImplementedError

    def write(self, key: str, text: str) -> None:
        """Store text under key, replacing any previous entry."""
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        """Delete an entry. Returns True if something was removed."""
        raise NotImplementedError

    def clear(self) -> int:
        """Delete every entry. Returns the number removed."""
        raise NotImplementedError

    def keys(self) -> List[str]:
        """All stored keys."""
        raise NotImplementedError


class FileCacheStore(CacheStore):
    """
    One JSON file per cache key under a directory.

    Example:
        store = FileCacheStore(Path("~/.gitportfolio/reports"))
        store.write("ab12...", report_json)
        text, written_at = store.read("ab12...")
    """

    SUFFIX = ".json"

    def __init__(self, directory: Path):
        """
        Initialize FileCacheStore.

        Args:
            directory: Cache directory; created on first write
        """
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}{self.SUFFIX}"

    def _write_atomic(self, path: Path, text: str) -> None:
        """Write text atomically using temp file and rename."""
        fd, temp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp"
        )

        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(text)
                f.write('\n')

            os.replace(temp_path, path)

        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def read(self, key: str) -> Optional[Tuple[str, float]]:
        path = self._path(key)
        try:
            written_at = path.stat().st_mtime
            with open(path, 'r', encoding='utf-8') as f:
                return f.read(), written_at
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Error reading {path}: {e}")
            return None

    def write(self, key: str, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._write_atomic(self._path(key), text)

    def delete(self, key: str) -> bool:
        try:
            self._path(key).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not delete cache entry {key}: {e}")
            return False

    def clear(self) -> int:
        removed = 0
        for key in self.keys():
            if self.delete(key):
                removed += 1
        return removed

    def keys(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{self.SUFFIX}"))


class MemoryCacheStore(CacheStore):
    """
    Dictionary-backed store.

    Args:
        clock: Returns the current POSIX time; used to stamp writes
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[Tuple[str, float]]:
        with self._lock:
            return self._entries.get(key)

    def write(self, key: str, text: str) -> None:
        with self._lock:
            self._entries[key] = (text, self.clock())

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            return removed

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def __len__(self) -> int:
        return len(self.keys())
