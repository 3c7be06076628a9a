# tests/test_cli.py
"""Tests for the command-line entry point."""

import json

import pytest

from gxregistry import cli
from gxregistry.registry import PackageEntry, RegistryStore

from conftest import gx_manifest


@pytest.fixture
def env(temp_dir, store, monkeypatch):
    """Point the CLI at a temp registry and the in-memory store."""
    path = temp_dir / "registry.json"
    monkeypatch.setenv("GXREGISTRY_REGISTRY_PATH", str(path))
    monkeypatch.setattr(cli, "IPFSStore", lambda *args, **kwargs: store)
    return path


class TestCLI:
    """Test subcommands."""

    def test_publish(self, env, store, capsys):
        """Test publish writes the entry to the registry file."""
        root = store.add_package("foo", manifest=gx_manifest())

        assert cli.main(["publish", "foo", root, "--author", "alice"]) == 0

        assert "success!" in capsys.readouterr().out
        assert RegistryStore.open(env).get("foo") == PackageEntry("foo", root, "alice")

    def test_publish_rejected(self, env, store, capsys):
        """Test a rejected publish exits 1 with the error kind."""
        root = store.add_package("foo", manifest=None)

        assert cli.main(["publish", "foo", root]) == 1
        assert "ManifestMissing" in capsys.readouterr().err

    def test_show_and_list(self, env, capsys):
        """Test show and list print registry entries."""
        RegistryStore.open(env).put(PackageEntry("foo", "QmFoo", "alice"))

        assert cli.main(["show", "foo"]) == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["Hash"] == "QmFoo"

        assert cli.main(["list"]) == 0
        assert capsys.readouterr().out == "foo\tQmFoo\talice\n"

    def test_show_unknown(self, env):
        """Test show on an unregistered name exits 1."""
        assert cli.main(["show", "nope"]) == 1

    def test_size(self, env, store, capsys):
        """Test size prints the total DAG size."""
        root = store.add_package("foo", manifest=b"{}", payload_size=98)
        assert cli.main(["size", root]) == 0
        assert f"{root}: 100 bytes" in capsys.readouterr().out

    def test_corrupt_registry_fails_startup(self, env):
        """Test a corrupt registry file exits with code 3."""
        env.write_text("{corrupt")
        assert cli.main(["list"]) == 3

    def test_no_command(self, capsys):
        """Test running without a subcommand prints help."""
        assert cli.main([]) == 1

    def test_bad_config(self, temp_dir, capsys):
        """Test an unknown config key exits with code 2."""
        path = temp_dir / "config.yaml"
        path.write_text("bogus: 1\n")
        assert cli.main(["-c", str(path), "list"]) == 2

    def test_malformed_yaml_config(self, temp_dir):
        """Test a config file that is not valid YAML exits with code 2."""
        path = temp_dir / "config.yaml"
        path.write_text("port: [8080\n")
        assert cli.main(["-c", str(path), "list"]) == 2

    def test_invalid_log_level(self, temp_dir, monkeypatch):
        """Test an unknown log level exits with code 2 instead of crashing."""
        path = temp_dir / "config.yaml"
        path.write_text("log_level: chatty\n")
        assert cli.main(["-c", str(path), "list"]) == 2

        monkeypatch.setenv("GXREGISTRY_LOG_LEVEL", "LOUD")
        assert cli.main(["list"]) == 2
