"""Bridge from synchronous callers (Celery tasks, the CLI) to async notifiers."""

import asyncio
from collections.abc import Coroutine
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion and return its result.

    Without a running event loop the coroutine gets a fresh loop of its
    own. Inside a running loop (an async route calling into sync service
    code) it runs on a short-lived worker thread instead, since the
    running loop cannot be re-entered.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()
