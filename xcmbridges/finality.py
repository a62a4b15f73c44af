"""
Waiting for a chain's finalized head to move.
"""

import asyncio
from typing import Awaitable, Callable, Protocol

from .constants import BASE_DELAY, MAX_RETRIES
from .logger import get_logger
from .types import BlockReference

logger = get_logger(__name__)


class FinalizedBlockSource(Protocol):
    async def get_finalized_block(self) -> BlockReference: ...


async def wait_for_next_block(
    client: FinalizedBlockSource,
    current_block: BlockReference,
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> BlockReference:
    """
    Wait until the finalized head is past ``current_block``.

    The finalized block is polled up to ``max_retries`` times with a delay of
    ``base_delay * 2**attempt`` seconds between polls. The first block whose
    number is strictly greater than ``current_block.number`` is returned.

    If the chain never advances, ``current_block`` itself is returned; callers
    that need progress must compare the result against their reference.
    """
    for attempt in range(max_retries):
        next_block = await client.get_finalized_block()
        if next_block.advanced_past(current_block):
            return next_block

        waiting = base_delay * 2 ** attempt
        logger.info(
            f"Waiting {waiting:g}s for the next block to be finalised ({attempt + 1}/{max_retries})..."
        )
        await sleep(waiting)

    return current_block
