"""
core/workers.py -- Bounded worker pool for CPU-bound crypto.

Argon2 hashing takes tens to hundreds of milliseconds and token AEAD work is
pure CPU. Running either inline in an async handler would stall every other
request on the event loop. CryptoPool gives them their own fixed-size thread
pool, separate from Starlette's I/O thread pool (used for store calls and the
moderation API), so a burst of logins cannot starve database I/O and vice
versa. argon2-cffi and the cryptography AES backend release the GIL while
they work, so threads give real parallelism here.

Usage:
    pool = CryptoPool(max_workers=4)
    digest = await pool.run(hash_password, "secret")
    pool.shutdown()
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")


class CryptoPool:
    def __init__(self, max_workers: int = 4) -> None:
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="crypto")

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run fn(*args, **kwargs) on the pool and await its result.

        Exceptions raised by fn propagate to the awaiting coroutine unchanged.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args, **kwargs))

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
