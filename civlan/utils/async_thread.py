# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
Asynchronous Thread Utilities

Provides:
- run_in_thread: Execute blocking calls (pyserial writes) in a thread pool
  without blocking the event loop
"""

import asyncio
import atexit
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Shared pool for blocking serial I/O
_DEFAULT_EXECUTOR = ThreadPoolExecutor(
    max_workers=2,
    thread_name_prefix='civlan-io'
)


async def run_in_thread(func: Callable[..., Any], *args, **kwargs) -> Any:
    """
    Run blocking function in the thread pool executor.

    Args:
        func: Blocking callable to execute
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)
    """
    loop = asyncio.get_running_loop()
    wrapped = partial(func, *args, **kwargs)
    return await loop.run_in_executor(_DEFAULT_EXECUTOR, wrapped)


atexit.register(lambda: _DEFAULT_EXECUTOR.shutdown(wait=False))
