"""Configuration loading and environment variable parsing for vm-keeper."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from vmkeeper.constants import (
    CONFIG_ENV_VAR,
    DEFAULT_LIBVIRT_URI,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SYSLOG_IDENT,
    TRUTHY,
)
from vmkeeper.exceptions import KeeperError
from vmkeeper.models import KeeperConfig
from vmkeeper.utils import get_env, get_env_bool, parse_int, parse_int_env

_FILE_KEYS = {"libvirt_uri", "poll_interval", "syslog", "syslog_ident"}


def load_config_file(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise KeeperError(f"Config file missing: {config_path}")
    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as exc:
        raise KeeperError(f"Invalid YAML in {config_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise KeeperError(f"{config_path} must contain a mapping (got {type(data).__name__})")
    unknown = sorted(set(data) - _FILE_KEYS)
    if unknown:
        raise KeeperError(f"Unknown keys in {config_path}: {', '.join(unknown)}")
    return data


def _file_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in TRUTHY
    raise KeeperError(f"{name} must be a boolean (got '{value}')")


def parse_env(vm_path: str) -> KeeperConfig:
    """Resolve the daemon configuration: environment over config file over defaults."""
    config_path: Optional[Path] = None
    file_values: Dict[str, Any] = {}
    raw_config_path = (get_env(CONFIG_ENV_VAR) or "").strip()
    if raw_config_path:
        config_path = Path(raw_config_path)
        file_values = load_config_file(config_path)

    libvirt_uri = (get_env("LIBVIRT_URI") or "").strip()
    if not libvirt_uri:
        libvirt_uri = str(file_values.get("libvirt_uri") or DEFAULT_LIBVIRT_URI)

    if get_env("POLL_INTERVAL") is not None:
        poll_interval = parse_int_env("POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL))
    elif "poll_interval" in file_values:
        poll_interval = parse_int("poll_interval", file_values["poll_interval"])
    else:
        poll_interval = DEFAULT_POLL_INTERVAL

    if get_env("LOG_SYSLOG") is not None:
        syslog_enabled = get_env_bool("LOG_SYSLOG", True)
    elif "syslog" in file_values:
        syslog_enabled = _file_bool("syslog", file_values["syslog"])
    else:
        syslog_enabled = True

    syslog_ident = (get_env("SYSLOG_IDENT") or "").strip()
    if not syslog_ident:
        syslog_ident = str(file_values.get("syslog_ident") or DEFAULT_SYSLOG_IDENT)

    return KeeperConfig(
        vm_path=Path(vm_path),
        libvirt_uri=libvirt_uri,
        poll_interval=poll_interval,
        syslog_enabled=syslog_enabled,
        syslog_ident=syslog_ident,
        config_path=config_path,
    )
