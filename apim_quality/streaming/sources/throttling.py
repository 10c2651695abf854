"""
Async iterator combinators bounding the request rate and duration of a listing.
"""

import asyncio
import logging
from typing import AsyncIterator, TypeVar

from apim_quality.core.errors import DiscoveryTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _aclose(source) -> None:
    aclose = getattr(source, "aclose", None)
    if aclose is not None:
        await aclose()


async def _next(iterator: AsyncIterator[T]) -> T:
    return await iterator.__anext__()


async def throttle(source: AsyncIterator[T], delay_seconds: float) -> AsyncIterator[T]:
    """
    Space consecutive items of `source` by `delay_seconds`.

    The first item is emitted as soon as it is available. Since items are
    pulled lazily, the delay also spaces the requests made by `source`.
    """
    first = True
    try:
        async for item in source:
            if not first and delay_seconds > 0:
                await asyncio.sleep(delay_seconds)
            first = False
            yield item
    finally:
        await _aclose(source)


async def with_deadline(source: AsyncIterator[T], timeout_seconds: float) -> AsyncIterator[T]:
    """
    Bound the whole iteration of `source` by `timeout_seconds`.

    Raises:
        DiscoveryTimeoutError: When the deadline expires before `source` is
            exhausted. Items already emitted are kept by the consumer.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_seconds
    iterator = source.__aiter__()
    emitted = 0
    try:
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise DiscoveryTimeoutError(timeout_seconds * 1000, emitted)
            # Errors raised by the source, TimeoutError included, propagate unchanged
            pending_item = asyncio.create_task(_next(iterator))
            try:
                done, _ = await asyncio.wait({pending_item}, timeout=remaining)
            finally:
                if not pending_item.done():
                    pending_item.cancel()
                    await asyncio.gather(pending_item, return_exceptions=True)
            if not done:
                logger.warning(f"Listing deadline of {timeout_seconds:g}s reached after {emitted} item(s)")
                raise DiscoveryTimeoutError(timeout_seconds * 1000, emitted)
            try:
                item = pending_item.result()
            except StopAsyncIteration:
                return
            emitted += 1
            yield item
    finally:
        await _aclose(iterator)
