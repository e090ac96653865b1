"""
Platform signer lock using Redis.
Serializes ledger submissions that share the platform keypair, so concurrent
executor processes do not race on the same fee payer.
"""
import json
import time
import logging
import uuid
from typing import Callable, Optional, Tuple, Dict

import redis

from nowink.core.config import get_settings
from nowink.core.exceptions import SignerBusy
from nowink.core.redis import get_redis_client

logger = logging.getLogger(__name__)

LOCK_POLL_STEP_SECONDS = 0.5


def _get_lock_key(signer_address: str) -> str:
    """Get Redis key for the signer lock."""
    return f"mint:signer:{signer_address}:lock"


class PlatformSignerLock:
    """
    Exclusive lock on one platform signer, held around a ledger submission.

    Usage:
        with PlatformSignerLock(platform_address):
            ledger.create_nft(...)
    """

    def __init__(
        self,
        signer_address: str,
        client: Optional[redis.Redis] = None,
        ttl_seconds: Optional[int] = None,
        wait_seconds: Optional[float] = None,
        step_seconds: float = LOCK_POLL_STEP_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = get_settings()
        self.signer_address = signer_address
        self._client = client
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.mint_lock_ttl_seconds
        self.wait_seconds = wait_seconds if wait_seconds is not None else settings.mint_lock_wait_seconds
        self.step_seconds = step_seconds
        self.sleep = sleep
        self.token = uuid.uuid4().hex
        self.acquired = False

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = get_redis_client()
        return self._client

    @property
    def key(self) -> str:
        return _get_lock_key(self.signer_address)

    def try_acquire(self) -> bool:
        """
        Try once to take the lock with SET NX EX.

        Returns:
            True if lock acquired, False if already held elsewhere
        """
        lock_data = {
            "token": self.token,
            "locked_at": time.time(),
        }
        success = self.client.set(self.key, json.dumps(lock_data), nx=True, ex=self.ttl_seconds)
        self.acquired = bool(success)
        return self.acquired

    def acquire(self) -> None:
        """
        Wait in fixed steps until the lock is free.

        Raises:
            SignerBusy: If the lock is not acquired within wait_seconds
        """
        waited = 0.0
        while not self.try_acquire():
            if waited >= self.wait_seconds:
                logger.warning(f"Signer lock for {self.signer_address} still held after {waited}s")
                raise SignerBusy(self.signer_address, self.wait_seconds)
            self.sleep(self.step_seconds)
            waited += self.step_seconds

        logger.info(f"Acquired signer lock for {self.signer_address}")

    def release(self) -> None:
        """Release the lock if this holder still owns it."""
        if not self.acquired:
            return
        held, info = self.holder()
        if held and info is not None and info.get("token") != self.token:
            # Expired and taken over by another process
            logger.warning(f"Signer lock for {self.signer_address} is no longer ours, leaving it")
        else:
            self.client.delete(self.key)
            logger.info(f"Released signer lock for {self.signer_address}")
        self.acquired = False

    def holder(self) -> Tuple[bool, Optional[Dict]]:
        """
        Check who holds the lock.

        Returns:
            Tuple of (is_locked, lock_info_dict)
        """
        lock_data = self.client.get(self.key)
        if lock_data:
            try:
                return True, json.loads(lock_data)
            except json.JSONDecodeError:
                logger.error(f"Failed to decode lock data for {self.signer_address}")
                return True, None
        return False, None

    def __enter__(self) -> "PlatformSignerLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
