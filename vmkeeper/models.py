"""Data models for vm-keeper."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from vmkeeper.constants import DEFAULT_LIBVIRT_URI, DEFAULT_POLL_INTERVAL, DEFAULT_SYSLOG_IDENT


class PowerState(enum.IntFlag):
    """Power state bits of a virtual machine."""

    POWERING_OFF = 0x0001
    POWERED_OFF = 0x0002
    POWERING_ON = 0x0004
    POWERED_ON = 0x0008
    SUSPENDING = 0x0010
    SUSPENDED = 0x0020
    TOOLS_RUNNING = 0x0040
    RESETTING = 0x0080
    BLOCKED_ON_MSG = 0x0100
    PAUSED = 0x0200
    RESUMING = 0x0800


class LifecycleState(enum.Enum):
    BOOTSTRAPPING = "bootstrapping"
    POWERING_ON = "powering-on"
    SUPERVISING = "supervising"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"


@dataclass
class KeeperConfig:
    vm_path: Path
    libvirt_uri: str = DEFAULT_LIBVIRT_URI
    poll_interval: int = DEFAULT_POLL_INTERVAL
    syslog_enabled: bool = True
    syslog_ident: str = DEFAULT_SYSLOG_IDENT
    config_path: Optional[Path] = None

    @property
    def vm_name(self) -> str:
        """Identity used in log lines: the path exactly as given."""
        return str(self.vm_path)
