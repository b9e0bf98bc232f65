from functools import lru_cache
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from lyrics_proxy.core.config import get_settings
from lyrics_proxy.services.proxy_pipeline import ProxyPipeline, build_pipeline
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Dependency Injection for the pipeline; one instance so the cache is shared
@lru_cache()
def get_pipeline() -> ProxyPipeline:
    return build_pipeline(get_settings())

@router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def proxy(
    request: Request,
    pipeline: ProxyPipeline = Depends(get_pipeline)
) -> Response:
    """
    Single entry point: every method and path goes through the proxy pipeline,
    which owns auth, rate limiting, caching, routing and error mapping.
    """
    logger.debug(f"Received {request.method} {request.url.path}")
    return await pipeline.handle(request)
