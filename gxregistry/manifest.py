# gxregistry/manifest.py
"""
Package manifest validation.

A published package root must look like:

    <root>/
        <package-dir>/
            package.json     # gx package descriptor
            ...

The validator checks that shape and that package.json decodes as a
package descriptor. Beyond decoding, the manifest's fields are not
interpreted by the registry.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ManifestInvalid, ManifestMissing, UnexpectedStructure
from .store import ContentStore

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "package.json"

# Known descriptor fields and the JSON type each must have when present.
_STRING_FIELDS = (
    "name", "author", "description", "version", "bin", "build", "test",
    "language", "license", "gxVersion", "gxLinkPath", "releaseCmd",
)
_DEPENDENCY_FIELDS = ("author", "name", "hash", "version")


def _check_string(data: Dict[str, Any], key: str, where: str):
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ManifestInvalid(
            f"invalid package file: {where}{key} must be a string, "
            f"got {type(value).__name__}"
        )


@dataclass
class Dependency:
    """A gx dependency entry."""
    name: str = ""
    hash: str = ""
    version: str = ""
    author: str = ""

    @classmethod
    def from_dict(cls, data: Any, index: int) -> "Dependency":
        if not isinstance(data, dict):
            raise ManifestInvalid(
                f"invalid package file: gxDependencies[{index}] must be an object"
            )
        for key in _DEPENDENCY_FIELDS:
            _check_string(data, key, f"gxDependencies[{index}].")
        return cls(
            name=data.get("name") or "",
            hash=data.get("hash") or "",
            version=data.get("version") or "",
            author=data.get("author") or "",
        )


@dataclass
class Manifest:
    """
    Decoded package descriptor.

    Attributes:
        name: Package name as declared by the author
        version: Declared version string
        author: Declared author
        language: Implementation language of the package
        dependencies: gx dependencies
        extra: Every other top-level field, undecoded
    """
    name: str = ""
    version: str = ""
    author: str = ""
    description: str = ""
    language: str = ""
    license: str = ""
    dependencies: List[Dependency] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Manifest":
        """
        Decode a parsed JSON document.

        Unknown fields are kept in ``extra``; known fields must carry the
        right type or ManifestInvalid is raised.
        """
        if not isinstance(data, dict):
            raise ManifestInvalid("invalid package file: expected a JSON object")

        for key in _STRING_FIELDS:
            _check_string(data, key, "")

        keywords = data.get("keywords")
        if keywords is None:
            keywords = []
        elif not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
            raise ManifestInvalid("invalid package file: keywords must be a list of strings")

        raw_deps = data.get("gxDependencies")
        if raw_deps is None:
            raw_deps = []
        elif not isinstance(raw_deps, list):
            raise ManifestInvalid("invalid package file: gxDependencies must be a list")

        bugs = data.get("bugs")
        if bugs is not None and not isinstance(bugs, dict):
            raise ManifestInvalid("invalid package file: bugs must be an object")

        known = set(_STRING_FIELDS) | {"keywords", "gxDependencies"}
        return cls(
            name=data.get("name") or "",
            version=data.get("version") or "",
            author=data.get("author") or "",
            description=data.get("description") or "",
            language=data.get("language") or "",
            license=data.get("license") or "",
            dependencies=[Dependency.from_dict(d, i) for i, d in enumerate(raw_deps)],
            keywords=keywords,
            extra={k: v for k, v in data.items() if k not in known},
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Manifest":
        """Decode the first JSON value in raw; anything after it is ignored."""
        try:
            data, _ = json.JSONDecoder().raw_decode(raw.decode("utf-8").lstrip())
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ManifestInvalid(f"invalid package file: {e}")
        return cls.from_dict(data)


@dataclass
class ValidatedPackage:
    """Result of a successful structural validation."""
    root: str
    package_dir: str
    manifest_address: str
    manifest: Manifest


class ManifestValidator:
    """
    Confirms a content root is shaped like a package.

    Read-only: issues list and fetch calls, never pins or writes.
    """

    def __init__(self, store: ContentStore, manifest_name: str = MANIFEST_FILENAME):
        self.store = store
        self.manifest_name = manifest_name

    def validate(self, root: str) -> ValidatedPackage:
        """
        Validate the package under root.

        Raises:
            UnexpectedStructure: root does not hold exactly one entry
            ManifestMissing: package dir has no manifest file
            ManifestInvalid: manifest does not decode
            FetchFailed: any listing or fetch failed
        """
        elems = self.store.list_children(root)
        logger.info("package listed...")

        if len(elems) != 1:
            raise UnexpectedStructure(address=root)

        package_dir = elems[0]
        logger.info(f"package name: {package_dir.name}")

        manifest_address = None
        for link in self.store.list_children(package_dir.address):
            if link.name == self.manifest_name:
                manifest_address = link.address
                break

        if not manifest_address:
            raise ManifestMissing(address=root)

        manifest = Manifest.from_bytes(self.store.fetch(manifest_address))
        logger.debug(f"Manifest {manifest_address}: {manifest.name} {manifest.version}")

        return ValidatedPackage(
            root=root,
            package_dir=package_dir.name,
            manifest_address=manifest_address,
            manifest=manifest,
        )
