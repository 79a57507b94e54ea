"""Bridges blocking service calls into async route handlers."""

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")


async def run_sync(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Run *func* in a worker thread so the event loop keeps serving requests."""
    return await asyncio.to_thread(func, *args, **kwargs)
