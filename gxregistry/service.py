# gxregistry/service.py
"""
Publish pipeline.

Takes a claim "name now maps to this content address" and either
accepts it or reports why not:

1. Validate the package structure and manifest
2. Walk the DAG and check its size against the ceiling
3. Pin the new content
4. Under the registry lock: unpin the superseded content, replace the
   entry, write the snapshot

Steps 1-2 have no side effects. Pin and unpin failures are logged and
reported on the result but do not stop the commit (unless strict_pin is
set, in which case a pin failure aborts before the registry is touched).
A snapshot write failure aborts the commit.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from .errors import PinFailed, RegistryError, UnpinFailed
from .manifest import ManifestValidator
from .registry import PackageEntry, RegistryStore
from .store import ContentStore
from .walker import MAX_PACKAGE_SIZE, DAGSizeWalker

logger = logging.getLogger(__name__)


class PublishStage(Enum):
    """Pipeline stages, in order."""
    RECEIVED = auto()
    VALIDATING = auto()
    SIZE_CHECKING = auto()
    PINNING = auto()
    COMMITTING = auto()
    DONE = auto()


@dataclass
class PublishResult:
    """
    Outcome of a publish.

    On failure ``stage`` is the stage that failed and ``error`` the
    exception it raised. ``pin_error`` / ``unpin_error`` record the
    non-fatal retention failures of an otherwise successful publish.
    """
    success: bool
    name: str
    content_address: str
    stage: PublishStage
    error: Optional[RegistryError] = None
    size: Optional[int] = None
    manifest_address: Optional[str] = None
    previous_address: Optional[str] = None
    pin_error: Optional[PinFailed] = None
    unpin_error: Optional[UnpinFailed] = None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error else None

    @property
    def message(self) -> str:
        """Reply text for the requester."""
        if self.success:
            return "success!"
        return str(self.error)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "name": self.name,
            "hash": self.content_address,
            "stage": self.stage.name,
            "error": str(self.error) if self.error else None,
            "kind": self.error_kind,
            "size": self.size,
            "manifest": self.manifest_address,
            "previous": self.previous_address,
            "pin_error": str(self.pin_error) if self.pin_error else None,
            "unpin_error": str(self.unpin_error) if self.unpin_error else None,
        }


class RegistryService:
    """
    Accepts or rejects publish requests against a registry.

    Safe to call from many threads at once: validation, size checks and
    pins run concurrently; only the commit is serialized by the
    registry lock.

    Args:
        store: Content store client
        registry: Registry to update
        max_size: Package size ceiling in bytes
        max_nodes: Optional bound on objects per package
        strict_pin: Abort the publish when pinning the new content fails
    """

    def __init__(self, store: ContentStore, registry: RegistryStore,
                 max_size: int = MAX_PACKAGE_SIZE, max_nodes: Optional[int] = None,
                 strict_pin: bool = False):
        self.store = store
        self.registry = registry
        self.strict_pin = strict_pin
        self.validator = ManifestValidator(store)
        self.walker = DAGSizeWalker(store, max_size=max_size, max_nodes=max_nodes)

    @property
    def max_size(self) -> int:
        return self.walker.max_size

    def publish(self, name: str, content_address: str, author: str) -> PublishResult:
        """
        Run the publish pipeline.

        Pipeline failures are returned, not raised.

        Raises:
            ValueError: name or content_address is empty
        """
        if not name:
            raise ValueError("package name must not be empty")
        if not content_address:
            raise ValueError("content address must not be empty")

        logger.info(f"add package request from {author} [{name} {content_address}]")
        result = PublishResult(
            success=False,
            name=name,
            content_address=content_address,
            stage=PublishStage.RECEIVED,
        )

        try:
            result.stage = PublishStage.VALIDATING
            validated = self.validator.validate(content_address)
            result.manifest_address = validated.manifest_address

            result.stage = PublishStage.SIZE_CHECKING
            result.size = self.walker.compute_size(content_address)
            logger.info(f"package size: {result.size}")

            result.stage = PublishStage.PINNING
            self._pin(result)

            result.stage = PublishStage.COMMITTING
            self._commit(result, PackageEntry(name, content_address, author))
        except RegistryError as e:
            logger.warning(f"Publish of {name} ({content_address}) failed at "
                           f"{result.stage.name}: {e}")
            result.error = e
            return result

        result.stage = PublishStage.DONE
        result.success = True
        logger.info(f"Published {name} -> {content_address}")
        return result

    def _pin(self, result: PublishResult):
        try:
            self.store.pin(result.content_address)
        except PinFailed as e:
            if self.strict_pin:
                raise
            logger.error(f"error pinning {result.content_address} for {result.name}: {e}")
            result.pin_error = e

    def _commit(self, result: PublishResult, entry: PackageEntry):
        with self.registry.lock:
            old = self.registry.get(entry.name)
            if old is not None:
                result.previous_address = old.content_address
                # Roots still mapped by any live name stay pinned
                if old.content_address != entry.content_address \
                        and not self._referenced_elsewhere(old):
                    try:
                        self.store.unpin(old.content_address)
                    except UnpinFailed as e:
                        logger.error(f"error unpinning old hash for {entry.name} - "
                                     f"{old.content_address} : {e}")
                        result.unpin_error = e
            self.registry.put(entry)

    def _referenced_elsewhere(self, old: PackageEntry) -> bool:
        """True if another live name still maps to old's root. Caller holds the lock."""
        for other in self.registry.list():
            if other.name != old.name and other.content_address == old.content_address:
                logger.info(f"keeping {old.content_address} pinned, still used by {other.name}")
                return True
        return False

    def get(self, name: str) -> Optional[PackageEntry]:
        return self.registry.get(name)

    def list(self) -> List[PackageEntry]:
        return self.registry.list()
