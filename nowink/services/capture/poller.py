"""
Confirmation poller: bounded, fixed-interval polling for a stream's mint address.

The poll budget is an explicit attempt counter plus a deadline. Sleep and clock
are injected so the loop can be driven without real delays.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError

from nowink.core.exceptions import GatewayApplicationError, GatewayTransportError
from nowink.models.domain import PendingMint, PollResult
from nowink.models.schemas import Stream

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 1.0
POLL_MAX_ATTEMPTS = 30

FetchStream = Callable[[str], Awaitable[Stream]]


class ConfirmationPoller:
    """Watches one stream at a time until it carries a mint address."""

    def __init__(
        self,
        fetch_stream: FetchStream,
        interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.fetch_stream = fetch_stream
        self.interval = interval
        self.max_attempts = max_attempts
        self.sleep = sleep
        self.clock = clock

    def begin(self, stream_id: str) -> PendingMint:
        """Create the correlation state for a freshly uploaded stream."""
        return PendingMint(
            stream_id=stream_id,
            max_attempts=self.max_attempts,
            deadline=self.clock() + self.interval * self.max_attempts,
        )

    def is_exhausted(self, pending: PendingMint) -> bool:
        return pending.exhausted or self.clock() >= pending.deadline

    async def step(self, pending: PendingMint) -> Optional[Stream]:
        """
        Make one attempt. Returns the stream if it now has a mint address.

        A failed fetch is not fatal: it is logged and counts toward the budget.
        """
        pending.attempts += 1
        try:
            stream = await self.fetch_stream(pending.stream_id)
        except (GatewayTransportError, GatewayApplicationError) as e:
            logger.warning(
                f"Poll attempt {pending.attempts}/{pending.max_attempts} for {pending.stream_id} failed: {e.message}"
            )
            return None
        except ValidationError as e:
            logger.warning(
                f"Poll attempt {pending.attempts}/{pending.max_attempts} for {pending.stream_id} "
                f"returned an unreadable stream: {e.error_count()} error(s)"
            )
            return None

        if stream.mint_address:
            return stream

        logger.debug(f"Poll attempt {pending.attempts}/{pending.max_attempts}: {pending.stream_id} not minted yet")
        return None

    async def poll(self, stream_id: str) -> PollResult:
        """
        Poll until the mint address appears or the budget runs out.

        Returns:
            A confirmed result carrying the mint address, or a still-pending
            result after the last attempt. Never raises for fetch failures.
        """
        pending = self.begin(stream_id)

        while True:
            stream = await self.step(pending)
            if stream is not None:
                logger.info(f"Mint confirmed for {stream_id} after {pending.attempts} attempt(s): {stream.mint_address}")
                return PollResult(
                    stream_id=stream_id,
                    attempts=pending.attempts,
                    mint_address=stream.mint_address,
                    stream=stream,
                )

            if pending.exhausted:
                break
            await self.sleep(self.interval)
            if self.is_exhausted(pending):
                break

        logger.info(f"Mint for {stream_id} still pending after {pending.attempts} attempt(s)")
        return PollResult(stream_id=stream_id, attempts=pending.attempts)
