"""vm-keeper package."""

__all__ = [
    "cli",
    "config",
    "constants",
    "exceptions",
    "hypervisor",
    "models",
    "supervisor",
    "utils",
]
