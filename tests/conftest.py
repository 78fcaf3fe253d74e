"""Shared test fixtures."""

from __future__ import annotations

import signal
from unittest.mock import MagicMock

import pytest

from vmkeeper.exceptions import HypervisorError
from vmkeeper.models import KeeperConfig, PowerState

# libvirt's VIR_ERR_OPERATION_INVALID; tests never import libvirt itself.
NOT_RUNNING_CODE = 55

DOMAIN_XML = """<domain type="kvm">
  <name>test-vm</name>
  <memory unit="MiB">512</memory>
  <os><type>hvm</type></os>
</domain>
"""


@pytest.fixture
def domain_xml(tmp_path):
    path = tmp_path / "test-vm.xml"
    path.write_text(DOMAIN_XML)
    return path


@pytest.fixture
def keeper_config(domain_xml) -> KeeperConfig:
    """Return a KeeperConfig with a short poll interval for loop tests."""
    return KeeperConfig(vm_path=domain_xml, poll_interval=0.01, syslog_enabled=False)


@pytest.fixture
def fake_client():
    """A hypervisor client whose calls all succeed and whose domain is running."""
    client = MagicMock(name="client")
    client.connect_host.return_value = MagicMock(name="conn")
    client.open_vm.return_value = MagicMock(name="domain")
    client.get_power_state.return_value = PowerState.POWERED_ON
    client.is_not_running.side_effect = lambda exc: exc.code == NOT_RUNNING_CODE
    return client


@pytest.fixture
def not_running_error() -> HypervisorError:
    return HypervisorError("virDomainManagedSave", "Requested operation is not valid: domain is not running", NOT_RUNNING_CODE)


@pytest.fixture(autouse=True)
def restore_sigterm():
    """Supervisor.run() changes SIGTERM's disposition; put it back after each test."""
    previous = signal.getsignal(signal.SIGTERM)
    yield
    signal.signal(signal.SIGTERM, previous)


_CONFIG_ENV_VARS = [
    "VMKEEPER_CONFIG",
    "LIBVIRT_URI",
    "POLL_INTERVAL",
    "LOG_SYSLOG",
    "SYSLOG_IDENT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Clear all environment variables that parse_env() reads."""
    for key in _CONFIG_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
