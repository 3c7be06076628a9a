# gxregistry - Gatekeeper for a content-addressed package registry
#
# Accepts "name now maps to this content address" claims, checks that the
# content is a well-formed package under a size ceiling, and durably
# updates the name -> package mapping while keeping the accepted content
# pinned and releasing the superseded content.
#
# Core concepts:
# - ContentStore: Capability interface over the content network (fetch, list, size, pin)
# - ManifestValidator: Checks package shape and decodes package.json
# - DAGSizeWalker: Sums the size of a package DAG under a ceiling
# - RegistryStore: In-memory mapping with an atomic JSON snapshot
# - RegistryService: The publish pipeline tying the above together

from .errors import (
    RegistryError,
    UnexpectedStructure,
    ManifestMissing,
    ManifestInvalid,
    FetchFailed,
    StoreTimeout,
    SizeExceeded,
    PinFailed,
    UnpinFailed,
    PersistFailed,
    StartupLoadFailed,
)
from .store import ContentStore, IPFSStore, Link
from .walker import DAGSizeWalker, MAX_PACKAGE_SIZE
from .manifest import Manifest, ManifestValidator, ValidatedPackage
from .registry import RegistryStore, PackageEntry
from .service import RegistryService, PublishResult, PublishStage
from .bot import CommandHandler, Message, Reply
from .config import Config, load_config

__all__ = [
    # Errors
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
    # Core
    "ContentStore",
    "IPFSStore",
    "Link",
    "DAGSizeWalker",
    "MAX_PACKAGE_SIZE",
    "Manifest",
    "ManifestValidator",
    "ValidatedPackage",
    "RegistryStore",
    "PackageEntry",
    "RegistryService",
    "PublishResult",
    "PublishStage",
    # Front end
    "CommandHandler",
    "Message",
    "Reply",
    "Config",
    "load_config",
]

__version__ = "0.1.0"
