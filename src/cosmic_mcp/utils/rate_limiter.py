"""Fixed-window request limiter keyed by identifier.

No locks: every read-then-write of an entry happens in synchronous code
that never awaits, so the asyncio event loop cannot interleave two checks.
Running this from several threads would need a mutex around is_allowed.
"""

import asyncio
import math
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, replace

import structlog

from cosmic_mcp.errors import RateLimitError

logger = structlog.get_logger()

DEFAULT_IDENTIFIER = "global"
CLEANUP_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class RateLimitConfig:
    """Window length and request budget per identifier."""

    window_ms: int
    max_requests: int


DEFAULT_RATE_LIMIT_CONFIG = RateLimitConfig(window_ms=60_000, max_requests=100)


@dataclass(frozen=True)
class RateLimitEntry:
    """Requests seen in the current window. Replaced, never mutated."""

    count: int
    reset_time: int


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter:
    """Per-identifier fixed-window counter with lazy reset.

    Expired entries are replaced on access, so correctness never depends on
    the periodic sweep. The sweep only reclaims memory.
    """

    def __init__(
        self,
        config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
        clock: Callable[[], int] | None = None,
    ):
        self.config = config
        self._clock = clock or _wall_clock_ms
        self._requests: dict[str, RateLimitEntry] = {}
        self._cleanup_task: asyncio.Task | None = None

    def _new_window(self, identifier: str, now: int) -> None:
        self._requests[identifier] = RateLimitEntry(
            count=1, reset_time=now + self.config.window_ms
        )

    def is_allowed(self, identifier: str = DEFAULT_IDENTIFIER) -> bool:
        """Count a request and report whether it fits in the window."""
        now = self._clock()
        entry = self._requests.get(identifier)

        if entry is None or now > entry.reset_time:
            self._new_window(identifier, now)
            return True

        if entry.count >= self.config.max_requests:
            return False

        self._requests[identifier] = replace(entry, count=entry.count + 1)
        return True

    def get_remaining_requests(self, identifier: str = DEFAULT_IDENTIFIER) -> int:
        """Requests left in the current window."""
        entry = self._requests.get(identifier)
        if entry is None or self._clock() > entry.reset_time:
            return self.config.max_requests
        return max(0, self.config.max_requests - entry.count)

    def get_time_until_reset(self, identifier: str = DEFAULT_IDENTIFIER) -> int:
        """Milliseconds until the window resets, 0 if there is no window."""
        entry = self._requests.get(identifier)
        if entry is None:
            return 0
        return max(0, entry.reset_time - self._clock())

    def get_rate_limit_info(self, identifier: str = DEFAULT_IDENTIFIER) -> dict[str, int]:
        """Limit, remaining quota, reset time and retry-after for an identifier."""
        now = self._clock()
        entry = self._requests.get(identifier)

        if entry is None or now > entry.reset_time:
            return {
                "limit": self.config.max_requests,
                "remaining": self.config.max_requests,
                "reset_time": now + self.config.window_ms,
                "retry_after": 0,
            }

        exhausted = entry.count >= self.config.max_requests
        return {
            "limit": self.config.max_requests,
            "remaining": max(0, self.config.max_requests - entry.count),
            "reset_time": entry.reset_time,
            "retry_after": max(0, entry.reset_time - now) if exhausted else 0,
        }

    def check_and_consume(self, identifier: str = DEFAULT_IDENTIFIER) -> None:
        """Count a request or raise RateLimitError."""
        if self.is_allowed(identifier):
            return

        info = self.get_rate_limit_info(identifier)
        logger.warning(
            "rate_limit_exceeded",
            identifier=identifier,
            limit=info["limit"],
            retry_after_ms=info["retry_after"],
        )
        raise RateLimitError(
            f"Rate limit exceeded. Try again in {math.ceil(info['retry_after'] / 1000)} seconds.",
            {"identifier": identifier, **info},
        )

    def reset(self, identifier: str = DEFAULT_IDENTIFIER) -> None:
        """Forget one identifier's window."""
        self._requests.pop(identifier, None)

    def reset_all(self) -> None:
        """Forget every window."""
        self._requests.clear()

    def cleanup(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._requests.items() if now > entry.reset_time]
        for key in expired:
            del self._requests[key]
        if expired:
            logger.debug("rate_limit_cleanup", removed=len(expired))
        return len(expired)

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            self.cleanup()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.get_running_loop().create_task(self._cleanup_loop())

    def get_stats(self) -> dict:
        """Tracked identifier count and current configuration."""
        return {"total_identifiers": len(self._requests), "config": asdict(self.config)}

    def update_config(self, **changes: int) -> None:
        """Change window_ms and/or max_requests in place."""
        self.config = replace(self.config, **changes)

    def destroy(self) -> None:
        """Stop the sweep and drop all state."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            self._cleanup_task = None
        self._requests.clear()


def create_rate_limiter(config: RateLimitConfig) -> RateLimiter:
    """Build a limiter with a custom configuration."""
    return RateLimiter(config)
