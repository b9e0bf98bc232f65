import asyncio
import hashlib
import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional
from starlette.requests import Request
from starlette.responses import Response
from lyrics_proxy.schemas.models import CachedResponse

logger = logging.getLogger(__name__)


def cache_key(request: Request) -> str:
    """Requests are cached by method and full URL (query string included)."""
    return f"{request.method.upper()} {request.url}"


class ResponseCache(ABC):
    """
    Key-by-request response store.
    `match` returns a ready Response or None, `put` stores one for `ttl` seconds.
    """

    def __init__(self, ttl: int = 86400):
        self.ttl = ttl

    @abstractmethod
    async def load(self, key: str) -> Optional[CachedResponse]:
        pass

    @abstractmethod
    async def save(self, key: str, entry: CachedResponse) -> None:
        pass

    async def match(self, request: Request) -> Optional[Response]:
        entry = await self.load(cache_key(request))
        if entry is None:
            return None
        if entry.expires_at <= time.time():
            logger.debug(f"Cache entry expired for {request.url.path}")
            return None
        return Response(
            content=entry.body,
            status_code=entry.status_code,
            headers=entry.headers,
        )

    async def put(self, request: Request, response: Response) -> None:
        headers = {
            k: v for k, v in response.headers.items()
            if k.lower() != "content-length"
        }
        entry = CachedResponse(
            status_code=response.status_code,
            headers=headers,
            body=response.body.decode("utf-8"),
            expires_at=time.time() + self.ttl,
        )
        await self.save(cache_key(request), entry)


class MemoryResponseCache(ResponseCache):
    """
    Process-local cache. Shared by every request served by this worker.

    Expired entries are swept on `save` at most once per `sweep_interval`
    seconds, and the store never holds more than `max_entries` (oldest
    insertion evicted first).
    """

    def __init__(self, ttl: int = 86400, max_entries: int = 10000, sweep_interval: float = 60.0):
        super().__init__(ttl)
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._entries: Dict[str, CachedResponse] = {}
        self._last_sweep = time.time()

    def __len__(self) -> int:
        return len(self._entries)

    def _sweep(self, now: float) -> None:
        expired = [k for k, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")

    async def load(self, key: str) -> Optional[CachedResponse]:
        entry = self._entries.get(key)
        if entry is not None and entry.expires_at <= time.time():
            del self._entries[key]
            return None
        return entry

    async def save(self, key: str, entry: CachedResponse) -> None:
        now = time.time()
        if now - self._last_sweep >= self.sweep_interval or len(self._entries) >= self.max_entries:
            self._sweep(now)

        # Re-inserting moves the key to the newest position
        self._entries.pop(key, None)
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = entry

    def clear(self) -> None:
        self._entries.clear()


class FileResponseCache(ResponseCache):
    """
    Stores cached responses as JSON files, one per request key.
    """

    def __init__(self, data_dir: str = "data/cache", ttl: int = 86400):
        super().__init__(ttl)
        self.data_dir = data_dir
        self._ensure_data_dir()

    def _ensure_data_dir(self):
        """Ensure the data directory exists."""
        if not os.path.exists(self.data_dir):
            try:
                os.makedirs(self.data_dir, exist_ok=True)
                logger.info(f"Created cache directory: {self.data_dir}")
            except OSError as e:
                logger.error(f"Failed to create cache directory {self.data_dir}: {e}")

    def _get_filename(self, key: str) -> str:
        hash_key = hashlib.md5(key.encode('utf-8')).hexdigest()
        return os.path.join(self.data_dir, f"{hash_key}.json")

    def _read(self, key: str) -> Optional[CachedResponse]:
        filepath = self._get_filename(key)
        if not os.path.exists(filepath):
            return None

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                return CachedResponse.model_validate_json(f.read())
        except Exception as e:
            logger.error(f"Failed to load cached response from {filepath}: {e}")
            return None

    def _write(self, key: str, entry: CachedResponse) -> None:
        filepath = self._get_filename(key)
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(entry.model_dump_json())
        logger.debug(f"Saved response to cache: {filepath}")

    async def load(self, key: str) -> Optional[CachedResponse]:
        return await asyncio.to_thread(self._read, key)

    async def save(self, key: str, entry: CachedResponse) -> None:
        await asyncio.to_thread(self._write, key, entry)
