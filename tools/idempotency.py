import time
from collections import OrderedDict
from typing import Optional

import redis
from loguru import logger


class Idem:
    """Drops repeated Slack deliveries of the same user's join event."""

    def __init__(self, redis_url: Optional[str] = None, max_keys: int = 100, ttl: int = 3600):
        """
        Use Redis when a URL is given and reachable, otherwise a bounded
        in-memory cache of the most recent keys.
        """
        self.r = None
        self.ttl = ttl
        self.max_keys = max(1, max_keys)
        self._memory_keys = OrderedDict()

        if redis_url:
            try:
                self.r = redis.from_url(redis_url)
                self.r.ping()
                logger.info("Redis connection established successfully")
            except Exception as e:
                logger.error(f"Redis connection failed, using in-memory dedup: {e}")
                self.r = None

    def check_and_set(self, key: str) -> bool:
        """
        Check if key was seen recently and remember it.

        Args:
            key: Slack user id

        Returns:
            True if key is new, False if it is a duplicate
        """
        if not key:
            logger.warning("Empty key provided to idempotency check")
            return False

        if self.r:
            try:
                result = self.r.set(
                    name=f"idem:{key}",
                    value=int(time.time()),
                    ex=self.ttl,
                    nx=True
                )
                return result is True
            except Exception as e:
                logger.error(f"Idempotency check failed: {e}")
                # Fail open
                return True

        if key in self._memory_keys:
            self._memory_keys.move_to_end(key)
            return False
        self._memory_keys[key] = int(time.time())
        while len(self._memory_keys) > self.max_keys:
            self._memory_keys.popitem(last=False)
        return True
