"""libvirt bindings for the handful of operations vm-keeper needs.

Every libvirt failure leaves this module as a HypervisorError naming the API
that failed, so callers never handle ``libvirt.libvirtError`` directly.
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Dict
from xml.etree.ElementTree import ParseError

from vmkeeper.exceptions import HypervisorError
from vmkeeper.models import PowerState
from vmkeeper.utils import load_domain_definition, log


def load_bindings():
    """Import the libvirt python bindings."""
    try:
        return importlib.import_module("libvirt")
    except ImportError as exc:
        raise SystemExit(f"libvirt python bindings not available: {exc}")


def _error(operation: str, exc) -> HypervisorError:
    message = exc.get_error_message() or str(exc)
    return HypervisorError(operation, message, exc.get_error_code() or 0)


class LibvirtClient:
    """Thin, synchronous wrapper around one libvirt host connection.

    ``bindings`` is the ``libvirt`` module; it is imported on first use when
    not given.
    """

    def __init__(self, uri: str, bindings=None) -> None:
        self.uri = uri
        self.libvirt = bindings if bindings is not None else load_bindings()
        self._power_states = self._build_state_map()

    def _build_state_map(self) -> Dict[int, PowerState]:
        lv = self.libvirt
        return {
            lv.VIR_DOMAIN_NOSTATE: PowerState(0),
            lv.VIR_DOMAIN_RUNNING: PowerState.POWERED_ON,
            lv.VIR_DOMAIN_BLOCKED: PowerState.POWERED_ON,
            lv.VIR_DOMAIN_PAUSED: PowerState.PAUSED,
            lv.VIR_DOMAIN_SHUTDOWN: PowerState.POWERING_OFF,
            lv.VIR_DOMAIN_SHUTOFF: PowerState.POWERED_OFF,
            lv.VIR_DOMAIN_CRASHED: PowerState.POWERED_OFF,
            lv.VIR_DOMAIN_PMSUSPENDED: PowerState.SUSPENDED,
        }

    def connect_host(self) -> Any:
        try:
            conn = self.libvirt.open(self.uri)
        except self.libvirt.libvirtError as exc:
            raise _error("virConnectOpen", exc) from exc
        if conn is None:
            raise HypervisorError("virConnectOpen", f"Failed to open libvirt connection to {self.uri}")
        return conn

    def open_vm(self, conn: Any, vm_path: Path) -> Any:
        """Look up the domain described by ``vm_path``, defining it first if libvirt does not know it."""
        try:
            name, xml = load_domain_definition(vm_path)
        except OSError as exc:
            raise HypervisorError("virDomainDefineXML", f"{vm_path}: {exc.strerror or exc}", exc.errno or 0) from exc
        except (ParseError, ValueError) as exc:
            raise HypervisorError("virDomainDefineXML", f"{vm_path}: {exc}") from exc

        try:
            return conn.lookupByName(name)
        except self.libvirt.libvirtError as exc:
            if exc.get_error_code() != self.libvirt.VIR_ERR_NO_DOMAIN:
                raise _error("virDomainLookupByName", exc) from exc
        log("INFO", f"Domain {name} is not defined yet; defining it from {vm_path}")
        try:
            domain = conn.defineXML(xml)
        except self.libvirt.libvirtError as exc:
            raise _error("virDomainDefineXML", exc) from exc
        if domain is None:
            raise HypervisorError("virDomainDefineXML", f"libvirt returned no domain for {vm_path}")
        return domain

    def power_on(self, domain: Any) -> None:
        try:
            active = domain.isActive()
        except self.libvirt.libvirtError as exc:
            raise _error("virDomainIsActive", exc) from exc
        if active:
            log("DEBUG", "Domain already running")
            return
        try:
            domain.create()
        except self.libvirt.libvirtError as exc:
            raise _error("virDomainCreate", exc) from exc

    def suspend(self, domain: Any) -> None:
        """Save the guest's memory to disk and stop it; the next power_on resumes it."""
        try:
            domain.managedSave(0)
        except self.libvirt.libvirtError as exc:
            raise _error("virDomainManagedSave", exc) from exc

    def get_power_state(self, domain: Any) -> PowerState:
        try:
            state, _reason = domain.state()
            if state == self.libvirt.VIR_DOMAIN_SHUTOFF and domain.hasManagedSaveImage(0):
                return PowerState.SUSPENDED
        except self.libvirt.libvirtError as exc:
            raise _error("virDomainGetState", exc) from exc
        return self._power_states.get(state, PowerState(0))

    def is_not_running(self, exc: HypervisorError) -> bool:
        return exc.code == self.libvirt.VIR_ERR_OPERATION_INVALID

    def release_vm(self, domain: Any) -> None:
        # virDomainFree runs when the Python object is collected; the caller
        # drops its last reference right after this call.
        log("DEBUG", f"Releasing domain handle {domain!r}")

    def disconnect_host(self, conn: Any) -> None:
        try:
            conn.close()
        except self.libvirt.libvirtError as exc:
            raise _error("virConnectClose", exc) from exc
