"""
Rate limiting for sign-in and verification-code requests.

Two layers:
- `ip_limiter`: slowapi limiter keyed on the client address, applied with a
  decorator on the sign-in route.
- `rate_limiter`: a sliding-window limiter keyed on an application key
  (``signin:<email>``, ``otp:<account id>``) backed by a `limits` storage.

The keyed limiter fails open: with no storage configured, or when the
storage backend errors, the request is allowed and a warning is logged.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from limits import RateLimitItemPerSecond
from limits.aio.strategies import MovingWindowRateLimiter
from limits.storage import storage_from_string
from slowapi import Limiter
from slowapi.util import get_remote_address

from mindnamo.core.config import settings

logger = logging.getLogger(__name__)

ip_limiter = Limiter(key_func=get_remote_address)


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    reset_at: Optional[float] = None


class AccountRateLimiter:
    """Process-wide keyed sliding-window limiter with an explicit init/close lifecycle."""

    NAMESPACE = "mindnamo-admin-auth"

    def __init__(self):
        self._storage = None
        self._strategy: Optional[MovingWindowRateLimiter] = None
        self._item = None

    @property
    def enabled(self) -> bool:
        return self._strategy is not None

    def init(self, storage_url: Optional[str] = None, requests: Optional[int] = None, window_seconds: Optional[int] = None):
        storage_url = settings.RATE_LIMIT_STORAGE_URL if storage_url is None else storage_url
        if not storage_url:
            logger.warning("⚠️ Rate limit storage not configured. Keyed rate limiting is DISABLED.")
            return

        try:
            self._storage = storage_from_string(storage_url)
            self._strategy = MovingWindowRateLimiter(self._storage)
        except Exception as e:
            logger.error(f"❌ Rate limit storage {storage_url!r} unusable, keyed rate limiting is DISABLED: {e}")
            self._storage = None
            self._strategy = None
            return

        self._item = RateLimitItemPerSecond(
            requests or settings.RATE_LIMIT_REQUESTS,
            window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS,
        )
        logger.info(f"✅ Keyed rate limiter ready ({self._item})")

    async def limit(self, key: str) -> RateLimitResult:
        """Record one hit for `key`; success is False once the window is exhausted."""
        if not self.enabled:
            return RateLimitResult(success=True)

        try:
            allowed = await self._strategy.hit(self._item, self.NAMESPACE, key)
            if allowed:
                return RateLimitResult(success=True)
            reset_at, _ = await self._strategy.get_window_stats(self._item, self.NAMESPACE, key)
            return RateLimitResult(success=False, reset_at=reset_at)
        except Exception as e:
            logger.error(f"Rate limit error for {key}: {e}")
            return RateLimitResult(success=True)

    async def close(self):
        self._strategy = None
        self._storage = None
        self._item = None


rate_limiter = AccountRateLimiter()


async def get_rate_limiter() -> AccountRateLimiter:
    """FastAPI dependency for the keyed limiter."""
    return rate_limiter
