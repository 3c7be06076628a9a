# tests/test_manifest.py
"""Tests for package structure and manifest validation."""

import json

import pytest

from gxregistry.errors import FetchFailed, ManifestInvalid, ManifestMissing, UnexpectedStructure
from gxregistry.manifest import Manifest, ManifestValidator
from gxregistry.store import Link

from conftest import gx_manifest


class TestManifestDecoding:
    """Test Manifest.from_bytes / from_dict."""

    def test_decodes_gx_descriptor(self):
        """Test decoding a full gx package.json."""
        manifest = Manifest.from_bytes(json.dumps(gx_manifest()).encode())

        assert manifest.name == "foo"
        assert manifest.version == "1.0.0"
        assert manifest.language == "go"
        assert len(manifest.dependencies) == 1
        assert manifest.dependencies[0].hash == "QmBar"
        assert manifest.extra["gx"] == {"dvcsimport": "github.com/whyrusleeping/foo"}

    def test_empty_object_is_valid(self):
        """Test an empty object decodes."""
        manifest = Manifest.from_bytes(b"{}")
        assert manifest.name == ""
        assert manifest.dependencies == []

    def test_null_fields_are_tolerated(self):
        """Test null fields decode as empty."""
        manifest = Manifest.from_dict({"name": None, "gxDependencies": None})
        assert manifest.name == ""
        assert manifest.dependencies == []

    def test_trailing_content_ignored(self):
        """Test bytes after the first JSON value do not fail decoding."""
        raw = b"\n  " + json.dumps(gx_manifest()).encode() + b"\n{\"stray\": true}\ngarbage"
        manifest = Manifest.from_bytes(raw)
        assert manifest.name == "foo"
        assert "stray" not in manifest.extra

    def test_unknown_fields_preserved(self):
        """Test unknown fields are kept in extra."""
        manifest = Manifest.from_dict({"name": "foo", "whatever": [1, 2]})
        assert manifest.extra == {"whatever": [1, 2]}

    @pytest.mark.parametrize("raw", [
        b"not json",
        b"{\"name\": ",
        b"\xff\xfe",
        b"[]",
        b"\"just a string\"",
        b"null",
    ])
    def test_undecodable_documents(self, raw):
        """Test documents that are not a JSON object are invalid."""
        with pytest.raises(ManifestInvalid):
            Manifest.from_bytes(raw)

    @pytest.mark.parametrize("data", [
        {"name": 5},
        {"version": 1.0},
        {"keywords": "a,b"},
        {"keywords": [1]},
        {"gxDependencies": {"name": "bar"}},
        {"gxDependencies": ["QmBar"]},
        {"gxDependencies": [{"hash": 42}]},
        {"bugs": "http://example.com"},
    ])
    def test_wrong_field_types(self, data):
        """Test known fields with the wrong type are invalid."""
        with pytest.raises(ManifestInvalid):
            Manifest.from_dict(data)


class TestManifestValidator:
    """Test ManifestValidator.validate."""

    def test_valid_package(self, store):
        """Test a well-formed package validates."""
        root = store.add_package("foo", manifest=gx_manifest())

        validated = ManifestValidator(store).validate(root)

        assert validated.root == root
        assert validated.package_dir == "foo"
        assert validated.manifest.name == "foo"
        assert store.fetch(validated.manifest_address) == json.dumps(gx_manifest()).encode()

    def test_empty_root(self, store):
        """Test a root with no children."""
        root = store.put(b"", links=[], size=0)
        with pytest.raises(UnexpectedStructure) as exc_info:
            ManifestValidator(store).validate(root)
        assert str(exc_info.value) == "expected just the package dir under given hash"

    def test_root_with_two_children(self, store):
        """Test a root with more than one child."""
        a = store.add_package("a", manifest=gx_manifest("a"))
        b = store.add_package("b", manifest=gx_manifest("b"))
        root = store.put(b"", links=[
            Link("a", store.links[a][0].address),
            Link("b", store.links[b][0].address),
        ], size=0)

        with pytest.raises(UnexpectedStructure):
            ManifestValidator(store).validate(root)

    def test_manifest_missing(self, store):
        """Test a package dir without package.json."""
        root = store.add_package("foo", manifest=None, payload_size=10)
        with pytest.raises(ManifestMissing) as exc_info:
            ManifestValidator(store).validate(root)
        assert str(exc_info.value) == "no package file found in given hash"

    def test_manifest_name_is_exact(self, store):
        """Test the manifest file name is matched case-sensitively."""
        wrong = store.put(json.dumps(gx_manifest()).encode())
        package_dir = store.put(b"dir", links=[Link("Package.json", wrong)], size=0)
        root = store.put(b"", links=[Link("foo", package_dir)], size=0)

        with pytest.raises(ManifestMissing):
            ManifestValidator(store).validate(root)

    def test_manifest_with_trailing_content(self, store):
        """Test a manifest followed by trailing bytes still validates."""
        raw = json.dumps(gx_manifest()).encode() + b"\n\x00\x00"
        root = store.add_package("foo", manifest=raw)
        assert ManifestValidator(store).validate(root).manifest.name == "foo"

    def test_manifest_invalid(self, store):
        """Test a package.json that does not decode."""
        root = store.add_package("foo", manifest=b"{broken")
        with pytest.raises(ManifestInvalid):
            ManifestValidator(store).validate(root)

    def test_unreachable_manifest(self, store):
        """Test a manifest that cannot be fetched."""
        root = store.add_package("foo", manifest=gx_manifest())
        manifest_address = store.links[store.links[root][0].address][0].address
        store.broken.add(manifest_address)

        with pytest.raises(FetchFailed):
            ManifestValidator(store).validate(root)

    def test_unreachable_root(self, store):
        """Test a root that cannot be listed."""
        with pytest.raises(FetchFailed):
            ManifestValidator(store).validate("QmNothing")

    def test_validation_has_no_side_effects(self, store):
        """Test validation never pins or unpins."""
        root = store.put(b"", links=[], size=0)
        with pytest.raises(UnexpectedStructure):
            ManifestValidator(store).validate(root)
        assert store.mutations == 0
