"""Global constants for vm-keeper."""

from __future__ import annotations

import os

DEFAULT_LIBVIRT_URI = "qemu:///system"
TRUTHY = {"1", "true", "yes", "on"}

# Seconds between two power-state checks.
DEFAULT_POLL_INTERVAL = 30

CONFIG_ENV_VAR = "VMKEEPER_CONFIG"
DEFAULT_SYSLOG_IDENT = "vm-keeper"

_LOG_VERBOSE = os.environ.get("LOG_VERBOSE", "").lower() in {"1", "true", "yes", "on"}

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
