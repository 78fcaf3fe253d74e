"""Lifecycle supervision for a single libvirt domain.

The supervisor owns the host connection and the domain handle for the whole
life of the process:

* On start it connects, opens the domain and powers it on.
* While running it polls the power state and powers the domain back on if it
  was switched off.
* On SIGTERM it suspends the domain, releases both handles and exits 0.

Any hypervisor failure outside of shutdown ends the process with status 1.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Any, Optional

from vmkeeper.constants import EXIT_FAILURE, EXIT_SUCCESS
from vmkeeper.exceptions import HypervisorError
from vmkeeper.models import KeeperConfig, LifecycleState, PowerState
from vmkeeper.utils import log


class Supervisor:
    def __init__(self, cfg: KeeperConfig, client) -> None:
        self.cfg = cfg
        self.client = client
        self._conn: Optional[Any] = None
        self._domain: Optional[Any] = None
        self._state = LifecycleState.BOOTSTRAPPING
        self._shutdown_requested: Optional[asyncio.Event] = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def conn(self) -> Optional[Any]:
        return self._conn

    @property
    def domain(self) -> Optional[Any]:
        return self._domain

    @property
    def vm_name(self) -> str:
        return self.cfg.vm_name

    def bootstrap(self) -> None:
        """Connect to the host and open the domain. Both handles are set on return."""
        self._state = LifecycleState.BOOTSTRAPPING
        self._conn = self.client.connect_host()
        self._domain = self.client.open_vm(self._conn, self.cfg.vm_path)

    def power_on(self) -> None:
        log("INFO", f"Powering on {self.vm_name}")
        self.client.power_on(self._domain)
        log("SUCCESS", f"Successfully powered on {self.vm_name}")

    def check_state(self) -> None:
        """Power the domain back on if it is found switched off.

        Suspended, paused and running domains are all left alone.
        """
        power_state = self.client.get_power_state(self._domain)
        if power_state & PowerState.POWERED_OFF:
            log("WARN", f"Restarting VM, state={int(power_state):#x}")
            self.power_on()

    def request_shutdown(self) -> None:
        if self._shutdown_requested is not None:
            self._shutdown_requested.set()

    def shutdown(self) -> None:
        """Suspend the domain. Never raises for a failed suspend: shutdown always completes."""
        self._state = LifecycleState.SHUTTING_DOWN
        log("INFO", f"Received SIGTERM, suspending {self.vm_name}")
        try:
            self.client.suspend(self._domain)
        except HypervisorError as exc:
            if self.client.is_not_running(exc):
                log("INFO", f"{self.vm_name} is not running; nothing to suspend")
            else:
                log("ERROR", str(exc))
        else:
            log("SUCCESS", f"Successfully suspended {self.vm_name}")

    def cleanup(self) -> None:
        """Release the domain handle, then the host connection. Each is released at most once."""
        if self._domain is not None:
            domain, self._domain = self._domain, None
            try:
                self.client.release_vm(domain)
            except HypervisorError as exc:
                log("WARN", f"Could not release domain handle: {exc}")
        if self._conn is not None:
            conn, self._conn = self._conn, None
            try:
                self.client.disconnect_host(conn)
            except HypervisorError as exc:
                log("WARN", f"Could not close libvirt connection: {exc}")

    async def supervise(self) -> None:
        """Steady state: poll until SIGTERM arrives, then run the shutdown handler."""
        loop = asyncio.get_running_loop()
        self._shutdown_requested = asyncio.Event()
        loop.add_signal_handler(signal.SIGTERM, self.request_shutdown)
        self._state = LifecycleState.SUPERVISING
        log("INFO", f"Supervising {self.vm_name} (power state checked every {self.cfg.poll_interval}s)")
        while True:
            try:
                await asyncio.wait_for(self._shutdown_requested.wait(), timeout=self.cfg.poll_interval)
            except asyncio.TimeoutError:
                self.check_state()
            else:
                break
        self.shutdown()

    def run(self) -> int:
        """Drive the whole lifecycle and return the process exit status."""
        # Until supervise() installs its handler a SIGTERM must not kill us
        # halfway through connecting or powering on.
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
        status = EXIT_FAILURE
        try:
            self.bootstrap()
            self._state = LifecycleState.POWERING_ON
            self.power_on()
            asyncio.run(self.supervise())
            status = EXIT_SUCCESS
        except HypervisorError as exc:
            log("ERROR", str(exc))
        finally:
            # Closing the event loop restores SIGTERM's default action.
            signal.signal(signal.SIGTERM, signal.SIG_IGN)
            self.cleanup()
            self._state = LifecycleState.TERMINATED
        return status
