from __future__ import annotations

import time
from typing import Optional

import anyio

from allergen_scanner.config import settings
from allergen_scanner.errors import ServiceTimeout


async def run_with_timeout(fn, *args, timeout_s: Optional[float] = None, **kwargs):
    """
    Run a blocking model call in a worker thread under a deadline.

    On timeout the thread is abandoned and its result discarded.
    Returns: (result, duration_seconds)
    """
    limit = settings.vlm_timeout_seconds if timeout_s is None else timeout_s
    start = time.perf_counter()
    try:
        with anyio.fail_after(limit):
            result = await anyio.to_thread.run_sync(
                lambda: fn(*args, **kwargs),
                abandon_on_cancel=True,
            )
        duration = time.perf_counter() - start
        return result, duration
    except TimeoutError as e:
        raise ServiceTimeout(f"Vision model timed out after {limit}s") from e
