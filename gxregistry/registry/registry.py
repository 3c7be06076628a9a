# gxregistry/registry/registry.py
"""
Name -> package mapping with a durable JSON snapshot.

Snapshot layout (registry.json), keyed by package name:

    {
        "foo": {"Author": "whyrusleeping", "Hash": "QmFoo..."},
        ...
    }

The file is always rewritten in full. Writes go to a temporary file in
the same directory which then replaces the snapshot, so a crash leaves
either the old or the new image on disk, never a partial one.
"""

import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ..errors import PersistFailed, StartupLoadFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageEntry:
    """
    The live state of one published name.

    Entries are immutable; a republish replaces the whole entry.

    Attributes:
        name: Registry key (case-sensitive)
        content_address: Content address of the package root
        author: Identity of the submitter, recorded as given
        published_at: Timestamp of the accepting publish
    """
    name: str
    content_address: str
    author: str
    published_at: float = field(default_factory=time.time, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Author": self.author,
            "Hash": self.content_address,
            "PublishedAt": self.published_at,
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "PackageEntry":
        address = data.get("Hash", data.get("contentAddress"))
        author = data.get("Author", data.get("author", ""))
        if not isinstance(address, str) or not address:
            raise ValueError(f"entry {name!r} has no content address")
        if not isinstance(author, str):
            raise ValueError(f"entry {name!r} has a non-string author")
        published_at = data.get("PublishedAt", 0.0)
        if not isinstance(published_at, (int, float)):
            raise ValueError(f"entry {name!r} has a non-numeric PublishedAt")
        return cls(
            name=name,
            content_address=address,
            author=author,
            published_at=float(published_at),
        )


class RegistryStore:
    """
    In-memory registry backed by a snapshot file.

    Mutations take ``lock`` (re-entrant, so callers may hold it across a
    read-modify-write) and are only applied in memory once the snapshot
    containing them is on disk. Readers never take the lock; they see
    either the mapping before a put or the mapping after it.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self.lock = threading.RLock()
        self._entries: Dict[str, PackageEntry] = {}

    @classmethod
    def open(cls, path: Path | str) -> "RegistryStore":
        """Create a store and load its snapshot."""
        store = cls(path)
        store.load()
        return store

    def load(self):
        """
        Load the snapshot into memory.

        A missing file is an empty registry. Anything else that stops the
        file from being read in full raises StartupLoadFailed.
        """
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info(f"No registry at {self.path}, starting empty")
            with self.lock:
                self._entries = {}
            return
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StartupLoadFailed(f"failed to load registry {self.path}: {e}")

        if not isinstance(data, dict):
            raise StartupLoadFailed(f"failed to load registry {self.path}: expected a JSON object")

        entries = {}
        for name, entry_data in data.items():
            if not isinstance(entry_data, dict):
                raise StartupLoadFailed(
                    f"failed to load registry {self.path}: entry {name!r} is not an object"
                )
            try:
                entries[name] = PackageEntry.from_dict(name, entry_data)
            except ValueError as e:
                raise StartupLoadFailed(f"failed to load registry {self.path}: {e}")

        with self.lock:
            self._entries = entries
        logger.info(f"Loaded {len(entries)} packages from {self.path}")

    def _write(self, entries: Dict[str, PackageEntry]):
        """Atomically replace the snapshot file with the given mapping."""
        data = {name: entry.to_dict() for name, entry in entries.items()}
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
            raise PersistFailed(f"failed to write registry {self.path}: {e}")

    def snapshot(self):
        """Write the full current mapping to disk."""
        with self.lock:
            self._write(self._entries)

    def put(self, entry: PackageEntry) -> Optional[PackageEntry]:
        """
        Insert or replace the entry for entry.name.

        The new mapping is written to disk first and swapped in only after
        the write succeeds; on PersistFailed memory is left unchanged.

        Returns:
            The entry that was replaced, or None
        """
        with self.lock:
            previous = self._entries.get(entry.name)
            entries = dict(self._entries)
            entries[entry.name] = entry
            self._write(entries)
            self._entries = entries
            return previous

    def get(self, name: str) -> Optional[PackageEntry]:
        """Get the live entry for a name."""
        return self._entries.get(name)

    def list(self) -> List[PackageEntry]:
        """List all entries, sorted by name."""
        entries = self._entries
        return [entries[name] for name in sorted(entries)]

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        entries = self._entries
        return {name: entry.to_dict() for name, entry in entries.items()}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PackageEntry]:
        return iter(self.list())
