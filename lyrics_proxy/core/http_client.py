# lyrics_proxy/core/http_client.py
"""
Shared httpx.AsyncClient used by the Genius client and the remote rate limiter.
"""

import httpx


class HttpClientManager:
    """
    Lazily creates one pooled HTTP/2 AsyncClient per process.
    """
    _client: httpx.AsyncClient | None = None

    @classmethod
    def get_client(cls) -> httpx.AsyncClient:
        """Get or create the shared HTTP client instance."""
        if cls._client is None or cls._client.is_closed:
            cls._client = httpx.AsyncClient(
                http2=True,  # requires httpx[http2]
                trust_env=False,
                timeout=20.0,
                limits=httpx.Limits(max_keepalive_connections=20, max_connections=40),
                headers={'User-Agent': 'LyricsProxy/1.0'},
            )
        return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared client. Called from the app lifespan on shutdown."""
        if cls._client is not None and not cls._client.is_closed:
            await cls._client.aclose()
            cls._client = None
