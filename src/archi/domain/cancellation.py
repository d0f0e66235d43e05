"""
Cancellation signal shared by stores, storage and services.

Operations receive an optional ``asyncio.Event``; once it is set, any
operation that has not started yet aborts with ``asyncio.CancelledError``.
"""

import asyncio
from typing import Optional


def raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    """Raise ``asyncio.CancelledError`` if cancellation has been requested."""
    if cancel_event is not None and cancel_event.is_set():
        raise asyncio.CancelledError("Operation cancelled before it started")
