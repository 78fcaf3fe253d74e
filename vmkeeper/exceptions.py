"""Custom exceptions for vm-keeper."""

from __future__ import annotations


class KeeperError(RuntimeError):
    """Raised on unrecoverable configuration or runtime errors."""


class HypervisorError(KeeperError):
    """A hypervisor call failed.

    ``operation`` is the name of the libvirt API that was called, ``code`` the
    numeric error code it reported.
    """

    def __init__(self, operation: str, message: str, code: int = 0) -> None:
        super().__init__(f"{operation}: {message} [{code}]")
        self.operation = operation
        self.message = message
        self.code = code
