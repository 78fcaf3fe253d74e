"""Tests for vmkeeper.config module."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from vmkeeper.config import load_config_file, parse_env
from vmkeeper.exceptions import KeeperError


@pytest.fixture
def config_file(tmp_path):
    """Create a temporary vm-keeper YAML config file."""
    path = tmp_path / "vm-keeper.yaml"
    path.write_text(
        yaml.dump(
            {
                "libvirt_uri": "qemu+ssh://host/system",
                "poll_interval": 45,
                "syslog": False,
                "syslog_ident": "keeper-file",
            }
        )
    )
    return path


class TestLoadConfigFile:
    def test_valid_file(self, config_file):
        data = load_config_file(config_file)
        assert data["poll_interval"] == 45
        assert data["syslog"] is False

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(KeeperError, match="Config file missing"):
            load_config_file(tmp_path / "nope.yaml")

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(KeeperError, match="must contain a mapping"):
            load_config_file(path)

    def test_unknown_key_raises(self, tmp_path):
        path = tmp_path / "typo.yaml"
        path.write_text("poll_intervall: 10\n")
        with pytest.raises(KeeperError, match="poll_intervall"):
            load_config_file(path)

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("poll_interval: [1,\n")
        with pytest.raises(KeeperError, match="Invalid YAML"):
            load_config_file(path)


class TestParseEnv:
    def test_defaults(self, clean_env):
        cfg = parse_env("/vms/web.xml")
        assert cfg.vm_path == Path("/vms/web.xml")
        assert cfg.libvirt_uri == "qemu:///system"
        assert cfg.poll_interval == 30
        assert cfg.syslog_enabled is True
        assert cfg.syslog_ident == "vm-keeper"
        assert cfg.config_path is None

    def test_env_values(self, clean_env, monkeypatch):
        monkeypatch.setenv("LIBVIRT_URI", "qemu:///session")
        monkeypatch.setenv("POLL_INTERVAL", "5")
        monkeypatch.setenv("LOG_SYSLOG", "no")
        monkeypatch.setenv("SYSLOG_IDENT", "keeper")
        cfg = parse_env("web.xml")
        assert cfg.libvirt_uri == "qemu:///session"
        assert cfg.poll_interval == 5
        assert cfg.syslog_enabled is False
        assert cfg.syslog_ident == "keeper"

    def test_file_values(self, clean_env, monkeypatch, config_file):
        monkeypatch.setenv("VMKEEPER_CONFIG", str(config_file))
        cfg = parse_env("web.xml")
        assert cfg.libvirt_uri == "qemu+ssh://host/system"
        assert cfg.poll_interval == 45
        assert cfg.syslog_enabled is False
        assert cfg.syslog_ident == "keeper-file"
        assert cfg.config_path == config_file

    def test_env_overrides_file(self, clean_env, monkeypatch, config_file):
        monkeypatch.setenv("VMKEEPER_CONFIG", str(config_file))
        monkeypatch.setenv("POLL_INTERVAL", "10")
        monkeypatch.setenv("LOG_SYSLOG", "1")
        cfg = parse_env("web.xml")
        assert cfg.poll_interval == 10
        assert cfg.syslog_enabled is True
        assert cfg.libvirt_uri == "qemu+ssh://host/system"

    def test_missing_config_file_raises(self, clean_env, monkeypatch, tmp_path):
        monkeypatch.setenv("VMKEEPER_CONFIG", str(tmp_path / "absent.yaml"))
        with pytest.raises(KeeperError, match="Config file missing"):
            parse_env("web.xml")

    @pytest.mark.parametrize("value", ["0", "-3"])
    def test_poll_interval_below_minimum(self, clean_env, monkeypatch, value):
        monkeypatch.setenv("POLL_INTERVAL", value)
        with pytest.raises(KeeperError, match="POLL_INTERVAL must be >= 1"):
            parse_env("web.xml")

    def test_file_poll_interval_must_be_integer(self, clean_env, monkeypatch, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("poll_interval: soon\n")
        monkeypatch.setenv("VMKEEPER_CONFIG", str(path))
        with pytest.raises(KeeperError, match="poll_interval must be an integer"):
            parse_env("web.xml")

    def test_file_syslog_must_be_boolean(self, clean_env, monkeypatch, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("syslog: 3\n")
        monkeypatch.setenv("VMKEEPER_CONFIG", str(path))
        with pytest.raises(KeeperError, match="syslog must be a boolean"):
            parse_env("web.xml")
