# gxregistry/errors.py
"""
Error taxonomy for the publish pipeline.

Every failure the registry can report is a RegistryError subclass. The
``kind`` attribute names the failure class; ``str(err)`` is the message
sent back to whoever requested the publish.
"""

from typing import Optional


class RegistryError(Exception):
    """Base class for all registry failures."""
    kind = "RegistryError"
    default_message = "registry error"

    def __init__(self, message: Optional[str] = None, address: Optional[str] = None):
        self.address = address
        super().__init__(message or self.default_message)


class UnexpectedStructure(RegistryError):
    """Package root does not hold exactly one package directory."""
    kind = "UnexpectedStructure"
    default_message = "expected just the package dir under given hash"


class ManifestMissing(RegistryError):
    kind = "ManifestMissing"
    default_message = "no package file found in given hash"


class ManifestInvalid(RegistryError):
    kind = "ManifestInvalid"
    default_message = "package file is not a valid package descriptor"


class FetchFailed(RegistryError):
    """A fetch, listing or size query against the content store failed."""
    kind = "FetchFailed"
    default_message = "failed to fetch object from content store"


class StoreTimeout(FetchFailed):
    kind = "Timeout"
    default_message = "content store request timed out"


class SizeExceeded(RegistryError):
    kind = "SizeExceeded"

    def __init__(self, limit: int, size: int, address: Optional[str] = None,
                 message: Optional[str] = None):
        self.limit = limit
        self.size = size
        super().__init__(
            message or f"package too large! must be under {limit} bytes",
            address=address,
        )


class PinFailed(RegistryError):
    kind = "PinFailed"
    default_message = "failed to pin package content"


class UnpinFailed(RegistryError):
    kind = "UnpinFailed"
    default_message = "failed to unpin superseded package content"


class PersistFailed(RegistryError):
    """Registry snapshot could not be written; the publish is aborted."""
    kind = "PersistFailed"
    default_message = "failed to write registry to disk"


class StartupLoadFailed(RegistryError):
    """Registry snapshot exists but cannot be read. Fatal to process start."""
    kind = "StartupLoadFailed"
    default_message = "failed to load registry from disk"


__all__ = [
    "RegistryError",
    "UnexpectedStructure",
    "ManifestMissing",
    "ManifestInvalid",
    "FetchFailed",
    "StoreTimeout",
    "SizeExceeded",
    "PinFailed",
    "UnpinFailed",
    "PersistFailed",
    "StartupLoadFailed",
]
