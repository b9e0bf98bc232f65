import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from lyrics_proxy.api.endpoints import proxy
from lyrics_proxy.core.config import get_settings
from lyrics_proxy.core.http_client import HttpClientManager

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await HttpClientManager.close()


app = FastAPI(
    title="Lyrics Proxy",
    description="Genius API proxy with DOM flattening, caching and rate limiting.",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    lifespan=lifespan,
)

app.include_router(proxy.router)


def run() -> None:
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8001"))
    logger.info(f"Starting Lyrics Proxy on {host}:{port}")
    uvicorn.run("lyrics_proxy.main:app", host=host, port=port)


if __name__ == "__main__":
    run()
