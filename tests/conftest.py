# tests/conftest.py
"""Shared fixtures: an in-memory content store and registry helpers."""

import hashlib
import json
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Set

import pytest

from gxregistry.errors import FetchFailed, PinFailed, UnpinFailed
from gxregistry.registry import RegistryStore
from gxregistry.store import ContentStore, Link


class FakeStore(ContentStore):
    """
    In-memory content store.

    Objects are added with put(); addresses are derived from content so
    identical objects share an address. Records every pin/unpin call.
    """

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.sizes: Dict[str, int] = {}
        self.links: Dict[str, List[Link]] = {}
        self.pinned: Set[str] = set()
        self.pin_calls: List[str] = []
        self.unpin_calls: List[str] = []
        self.size_calls: List[str] = []
        self.fail_pin = False
        self.fail_unpin = False
        self.broken: Set[str] = set()
        self._lock = threading.Lock()

    def put(self, data: bytes = b"", links: List[Link] = None, size: int = None) -> str:
        links = links or []
        digest = hashlib.sha256(
            data + json.dumps([(l.name, l.address) for l in links]).encode()
        ).hexdigest()
        address = f"Qm{digest[:40]}"
        self.objects[address] = data
        self.sizes[address] = len(data) if size is None else size
        self.links[address] = list(links)
        return address

    def link(self, address: str, name: str, child: str):
        """Add a link after creation (for building cycles)."""
        self.links[address].append(Link(name, child))

    def _check(self, address: str):
        if address in self.broken or address not in self.objects:
            raise FetchFailed(f"object not found: {address}", address=address)

    def fetch(self, address: str) -> bytes:
        self._check(address)
        return self.objects[address]

    def list_children(self, address: str) -> List[Link]:
        self._check(address)
        return list(self.links[address])

    def local_size(self, address: str) -> int:
        self._check(address)
        self.size_calls.append(address)
        return self.sizes[address]

    def pin(self, address: str) -> None:
        with self._lock:
            self.pin_calls.append(address)
            if self.fail_pin:
                raise PinFailed(f"pin failed: {address}", address=address)
            self.pinned.add(address)

    def unpin(self, address: str) -> None:
        with self._lock:
            self.unpin_calls.append(address)
            if self.fail_unpin:
                raise UnpinFailed(f"unpin failed: {address}", address=address)
            self.pinned.discard(address)

    @property
    def mutations(self) -> int:
        return len(self.pin_calls) + len(self.unpin_calls)

    def add_package(self, name: str = "foo", manifest=None, payload_size: int = 0,
                    version: str = "1.0.0") -> str:
        """
        Build root -> <name>/ -> {package.json, payload} and return the root.

        manifest may be a dict (JSON-encoded), raw bytes, or None for a
        package without a manifest file.
        """
        if manifest is None:
            manifest_bytes = None
        elif isinstance(manifest, bytes):
            manifest_bytes = manifest
        else:
            manifest_bytes = json.dumps(manifest).encode()

        children = []
        if manifest_bytes is not None:
            children.append(Link("package.json", self.put(manifest_bytes)))
        if payload_size:
            payload = self.put(f"{name}-{version}-payload".encode(), size=payload_size)
            children.append(Link("main.go", payload))
        package_dir = self.put(f"dir:{name}:{version}".encode(), links=children, size=0)
        return self.put(b"", links=[Link(name, package_dir)], size=0)


def gx_manifest(name: str = "foo", version: str = "1.0.0") -> dict:
    return {
        "name": name,
        "author": "whyrusleeping",
        "version": version,
        "language": "go",
        "license": "MIT",
        "gxVersion": "0.10.0",
        "gxDependencies": [
            {"name": "bar", "hash": "QmBar", "version": "0.1.0", "author": "jbenet"},
        ],
        "gx": {"dvcsimport": "github.com/whyrusleeping/foo"},
    }


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def registry(temp_dir):
    return RegistryStore.open(temp_dir / "registry.json")
