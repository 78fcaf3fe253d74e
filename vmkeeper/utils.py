"""Utility functions for vm-keeper."""

from __future__ import annotations

import os
import syslog
from pathlib import Path
from typing import Optional, Tuple
from xml.etree.ElementTree import fromstring

from vmkeeper.constants import _LOG_VERBOSE, TRUTHY
from vmkeeper.exceptions import KeeperError

_SYSLOG_PRIORITIES = {
    "ERROR": syslog.LOG_ERR,
    "WARN": syslog.LOG_WARNING,
    "SUCCESS": syslog.LOG_NOTICE,
    "INFO": syslog.LOG_INFO,
    "DEBUG": syslog.LOG_DEBUG,
}

_syslog_open = False


def configure_syslog(ident: str) -> None:
    """Mirror every subsequent log() line to the system log."""
    global _syslog_open
    syslog.openlog(ident=ident, logoption=syslog.LOG_PID, facility=syslog.LOG_DAEMON)
    _syslog_open = True


def close_syslog() -> None:
    global _syslog_open
    if _syslog_open:
        syslog.closelog()
        _syslog_open = False


def log(level: str, message: str) -> None:
    """Lightweight structured logging with coloured console output and an optional syslog sink."""
    if level == "DEBUG" and not _LOG_VERBOSE:
        return
    colours = {
        "INFO": "\033[0;34m",
        "WARN": "\033[1;33m",
        "ERROR": "\033[0;31m",
        "SUCCESS": "\033[0;32m",
        "DEBUG": "\033[0;90m",
    }
    colour = colours.get(level, "")
    reset = "\033[0m" if colour else ""
    print(f"{colour}[{level}]{reset} {message}", flush=True)
    if _syslog_open:
        syslog.syslog(_SYSLOG_PRIORITIES.get(level, syslog.LOG_INFO), message)


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def get_env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in TRUTHY


def parse_int_env(name: str, default: str, min_val: int = 1, max_val: Optional[int] = None) -> int:
    raw = get_env(name, default)
    assert raw is not None
    return parse_int(name, raw, min_val=min_val, max_val=max_val)


def parse_int(name: str, raw: object, min_val: int = 1, max_val: Optional[int] = None) -> int:
    if isinstance(raw, bool):
        raise KeeperError(f"{name} must be an integer (got '{raw}')")
    try:
        value = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise KeeperError(f"{name} must be an integer (got '{raw}')")
    if value < min_val:
        raise KeeperError(f"{name} must be >= {min_val} (got {value})")
    if max_val is not None and value > max_val:
        raise KeeperError(f"{name} must be <= {max_val} (got {value})")
    return value


def load_domain_definition(path: Path) -> Tuple[str, str]:
    """Return ``(domain_name, xml)`` for a libvirt domain XML file.

    Raises OSError when the file cannot be read, ParseError for malformed XML
    and ValueError when the document is not a named ``<domain>``.
    """
    xml = path.read_text()
    root = fromstring(xml)
    name = (root.findtext("name") or "").strip()
    if root.tag != "domain" or not name:
        raise ValueError(f"{path} is not a libvirt domain definition")
    return name, xml
