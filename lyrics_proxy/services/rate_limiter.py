import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple
import httpx
from lyrics_proxy.core.http_client import HttpClientManager
from lyrics_proxy.schemas.models import RateLimitResult

logger = logging.getLogger(__name__)


class RateLimiter(ABC):
    """Answers whether the caller identified by `key` may proceed."""

    @abstractmethod
    async def limit(self, key: str) -> RateLimitResult:
        pass


class FixedWindowRateLimiter(RateLimiter):
    """
    In-process limiter: at most `limit_requests` per key in each `period` second window.

    Finished windows are swept at most once per period, and at most
    `max_keys` windows are tracked (oldest window evicted first).
    """

    def __init__(self, limit_requests: int, period: int = 60, max_keys: int = 10000):
        self.limit_requests = limit_requests
        self.period = period
        self.max_keys = max_keys
        self._windows: Dict[str, Tuple[float, int]] = {}  # key -> (window_start, count)
        self._last_sweep = time.monotonic()

    def __len__(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        finished = [k for k, (start, _) in self._windows.items() if now - start >= self.period]
        for key in finished:
            del self._windows[key]
        self._last_sweep = now

    async def limit(self, key: str) -> RateLimitResult:
        now = time.monotonic()
        if now - self._last_sweep >= self.period or len(self._windows) >= self.max_keys:
            self._sweep(now)

        window_start, count = self._windows.get(key, (now, 0))
        if now - window_start >= self.period:
            window_start, count = now, 0

        if count >= self.limit_requests:
            return RateLimitResult(success=False)

        if count == 0:
            # New window goes to the back of the eviction order
            self._windows.pop(key, None)
            while len(self._windows) >= self.max_keys:
                del self._windows[next(iter(self._windows))]
        self._windows[key] = (window_start, count + 1)
        return RateLimitResult(success=True)


class RemoteRateLimiter(RateLimiter):
    """
    Delegates to an external limiter service.
    POST {"key": ...} -> {"success": bool}
    """

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or HttpClientManager.get_client()

    async def limit(self, key: str) -> RateLimitResult:
        response = await self.client.post(self.url, json={"key": key})
        response.raise_for_status()
        return RateLimitResult.model_validate(response.json())
