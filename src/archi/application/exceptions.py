"""
Application-level exceptions.

These signal programmer-contract violations: a missing required argument,
use of a capability the archive store does not provide, or use of a closed
service. They are raised, never returned inside a Result, and callers are
expected to fix the calling code rather than handle them.
"""


class ArchiContractError(Exception):
    """Base exception for contract violations."""
    pass


class MissingArgumentError(ArchiContractError, ValueError):
    """Raised when a required argument is None."""

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f"Argument '{argument}' must not be None")


class CapabilityUnsupportedError(ArchiContractError, NotImplementedError):
    """Raised when the archive store lacks the capability an operation needs."""

    def __init__(self, capability: str, store: object = None):
        self.capability = capability
        store_name = type(store).__name__ if store is not None else "archive store"
        super().__init__(f"{store_name} does not support {capability}")


class ArchiveManagerClosedError(ArchiContractError, RuntimeError):
    """Raised when an operation is invoked on a closed archive service."""

    def __init__(self, name: str = "ArchiveApplicationService"):
        super().__init__(f"{name} has been closed")
