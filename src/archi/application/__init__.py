"""
Application layer - Orchestrates domain operations and use cases.

This layer contains:
- The archive application service
- DTOs, options and the validation pipeline
- The error catalog and contract-violation exceptions
"""

from . import dtos, exceptions, services

__all__ = [
    "exceptions",
    "dtos",
    "services",
]
