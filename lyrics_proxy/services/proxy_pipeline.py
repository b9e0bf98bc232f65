import hmac
import logging
import re
from typing import Optional

from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from lyrics_proxy.core.config import Settings
from lyrics_proxy.core.errors import (
    AuthError,
    ConfigurationError,
    MethodNotAllowedError,
    NotFoundError,
    ProxyError,
    RateLimitError,
)
from lyrics_proxy.services.cache_service import FileResponseCache, MemoryResponseCache, ResponseCache
from lyrics_proxy.services.genius_client import GeniusClient
from lyrics_proxy.services.rate_limiter import FixedWindowRateLimiter, RateLimiter, RemoteRateLimiter

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Proxy-Secret"
CACHE_STATUS_HEADER = "X-Proxy-Cache"

SONG_ROUTE = re.compile(r"^/song/(\d+)$", re.ASCII)
ARTIST_ROUTE = re.compile(r"^/artist/(\d+)$", re.ASCII)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": f"Content-Type, {SECRET_HEADER}",
    "Access-Control-Max-Age": "86400",
}
CACHE_CONTROL = "public, s-maxage=86400, max-age=3600"  # 24h at the edge, 1h in browsers

API_INFO = {
    "message": "Genius API Proxy",
    "endpoints": {
        "song": "/song/{songId}",
        "artist": "/artist/{artistId}",
    },
}


class ProxyPipeline:
    """
    Per-request gate sequence (OPTIONS preflights are answered first):
    auth -> rate limit -> cache -> method -> route -> upstream fetch.

    Every gate raises a ProxyError on refusal; `handle` turns it into a response.
    """

    def __init__(
        self,
        settings: Settings,
        genius: Optional[GeniusClient] = None,
        cache: Optional[ResponseCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.settings = settings
        self.genius = genius or GeniusClient(settings.genius_api_base)
        self.cache = cache
        self.rate_limiter = rate_limiter

    async def handle(self, request: Request) -> Response:
        # Browsers never attach X-Proxy-Secret to a preflight; it carries no content
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=PREFLIGHT_HEADERS)

        try:
            self._authenticate(request)
            await self._check_rate_limit(request)

            cached = await self._lookup_cache(request)
            if cached is not None:
                return cached

            if request.method != "GET":
                raise MethodNotAllowedError()

            return await self._dispatch(request)
        except ProxyError as e:
            return self._error_response(e)
        except Exception as e:
            logger.exception(f"Unhandled error for {request.method} {request.url.path}")
            return self._error_response(ProxyError(str(e) or "Internal error"))

    # --- Gates ---

    def _authenticate(self, request: Request) -> None:
        if not self.settings.require_secret:
            return
        expected = self.settings.proxy_secret
        provided = request.headers.get(SECRET_HEADER)
        if not expected or provided is None:
            raise AuthError()
        if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
            logger.warning(f"Rejected request with invalid secret: {request.url.path}")
            raise AuthError()

    def _client_key(self, request: Request) -> str:
        return request.headers.get(self.settings.client_ip_header) or "anonymous"

    async def _check_rate_limit(self, request: Request) -> None:
        if self.rate_limiter is None:
            return
        key = self._client_key(request)
        try:
            outcome = await self.rate_limiter.limit(key)
        except Exception as e:
            # Limiter outage lets traffic through
            logger.warning(f"Rate limiter unavailable, allowing {key}: {e}")
            return
        if not outcome.success:
            logger.warning(f"Rate limit exceeded for {key}")
            raise RateLimitError()

    async def _lookup_cache(self, request: Request) -> Optional[Response]:
        if self.cache is None or request.method != "GET":
            return None
        try:
            cached = await self.cache.match(request)
        except Exception as e:
            logger.warning(f"Cache lookup failed for {request.url.path}: {e}")
            return None
        if cached is None:
            return None
        logger.info(f"Cache Hit for {request.url.path}")
        cached.headers[CACHE_STATUS_HEADER] = "HIT"
        return cached

    # --- Routing & execution ---

    async def _dispatch(self, request: Request) -> Response:
        path = request.url.path

        if path in ("/", ""):
            return JSONResponse(API_INFO, headers=CORS_HEADERS)

        song_match = SONG_ROUTE.match(path)
        if song_match:
            token = self._require_token()
            record = await self.genius.fetch_song(song_match.group(1), token)
            return self._cacheable_response(request, record.model_dump_json())

        artist_match = ARTIST_ROUTE.match(path)
        if artist_match:
            token = self._require_token()
            record = await self.genius.fetch_artist(artist_match.group(1), token)
            return self._cacheable_response(request, record.model_dump_json())

        raise NotFoundError()

    def _require_token(self) -> str:
        if not self.settings.genius_token:
            raise ConfigurationError("GENIUS_ACCESS_TOKEN not configured")
        return self.settings.genius_token

    def _cacheable_response(self, request: Request, body: str) -> Response:
        logger.info(f"Cache Miss for {request.url.path}")
        response = Response(
            content=body,
            status_code=200,
            media_type="application/json",
            headers={
                **CORS_HEADERS,
                "Cache-Control": CACHE_CONTROL,
                CACHE_STATUS_HEADER: "MISS",
            },
        )
        if self.cache is not None:
            # Runs after the response has been sent
            response.background = BackgroundTask(self._write_through, request, response)
        return response

    async def _write_through(self, request: Request, response: Response) -> None:
        try:
            await self.cache.put(request, response)
        except Exception as e:
            logger.warning(f"Failed to cache response for {request.url.path}: {e}")

    @staticmethod
    def _error_response(error: ProxyError) -> Response:
        if isinstance(error, MethodNotAllowedError):
            return PlainTextResponse(error.message, status_code=error.status_code, headers=CORS_HEADERS)
        return JSONResponse({"error": error.message}, status_code=error.status_code, headers=CORS_HEADERS)


def build_rate_limiter(settings: Settings) -> Optional[RateLimiter]:
    if settings.rate_limit_url:
        logger.info(f"Remote rate limiter enabled: {settings.rate_limit_url}")
        return RemoteRateLimiter(settings.rate_limit_url)
    if settings.rate_limit_requests:
        logger.info(f"In-memory rate limiter enabled: {settings.rate_limit_requests}/{settings.rate_limit_period}s")
        return FixedWindowRateLimiter(settings.rate_limit_requests, settings.rate_limit_period)
    logger.info("Rate limiting disabled")
    return None


def build_cache(settings: Settings) -> Optional[ResponseCache]:
    if settings.cache_backend == "file":
        return FileResponseCache(settings.cache_dir, ttl=settings.cache_ttl)
    if settings.cache_backend == "memory":
        return MemoryResponseCache(ttl=settings.cache_ttl)
    if settings.cache_backend not in ("none", "off", ""):
        logger.warning(f"Unknown CACHE_BACKEND '{settings.cache_backend}', caching disabled")
    return None


def build_pipeline(settings: Settings) -> ProxyPipeline:
    if not settings.genius_token:
        logger.warning("GENIUS_ACCESS_TOKEN not set. Song and artist routes will fail.")
    if settings.require_secret and not settings.proxy_secret:
        logger.warning("PROXY_SECRET not set while required. All requests will be rejected.")
    return ProxyPipeline(
        settings,
        genius=GeniusClient(settings.genius_api_base),
        cache=build_cache(settings),
        rate_limiter=build_rate_limiter(settings),
    )
