# gxregistry/registry/__init__.py
"""
Package registry.

The registry maps package names to the content address of their current
published root. It lives in memory and is snapshotted to a single JSON
file after every accepted change.

Example:
    registry = RegistryStore.open("/var/lib/gxregistry/registry.json")
    registry.put(PackageEntry("foo", "QmFoo...", "whyrusleeping"))
    registry.get("foo").content_address
"""

from .registry import RegistryStore, PackageEntry

__all__ = ["RegistryStore", "PackageEntry"]
