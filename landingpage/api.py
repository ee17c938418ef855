"""FastAPI application serving the landing page and snapshot API."""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .cache import IngressCache
from .logging_config import get_logger, log_api_request, log_api_response
from .models import IngressSnapshot
from .scheduler import RefreshScheduler
from .web import generate_landing_page

logger = get_logger(__name__)

DEFAULT_TITLE = "Landing Page"


def create_app(
    cache: IngressCache,
    scheduler: Optional[RefreshScheduler] = None,
    title: Optional[str] = None,
    static_dir: Optional[str] = None,
) -> FastAPI:
    """Build the web application around an existing cache.

    The scheduler, when given, is started and stopped with the application.
    Every route only reads the published snapshot.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()
            logger.info("Shutting down landingpage API")

    app = FastAPI(
        title="landingpage",
        description="Landing page listing ingresses across Kubernetes clusters",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.cache = cache
    app.state.scheduler = scheduler
    app.state.title = title or os.getenv("PAGE_TITLE", DEFAULT_TITLE)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = asyncio.get_running_loop().time()
        log_api_request(logger, request.method, str(request.url.path),
                        client_ip=request.client.host if request.client else "unknown")
        response = await call_next(request)
        duration = asyncio.get_running_loop().time() - start_time
        log_api_response(logger, request.method, str(request.url.path),
                         response.status_code,
                         duration_ms=round(duration * 1000, 2))
        return response

    @app.get("/", response_class=HTMLResponse)
    async def landing_page(request: Request):
        snapshot = request.app.state.cache.current()
        return HTMLResponse(content=generate_landing_page(snapshot, request.app.state.title))

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "landingpage"}

    @app.get("/api/ingresses", response_model=IngressSnapshot)
    async def get_ingresses(request: Request):
        return request.app.state.cache.current()

    @app.get("/api/status")
    async def get_status(request: Request) -> Dict[str, Any]:
        """Last refresh time and per-cluster errors."""
        status = request.app.state.cache.status()
        sched = request.app.state.scheduler
        body = status.model_dump(mode="json")
        body["status"] = "healthy" if status.healthy else "degraded"
        if sched is not None:
            body["scheduler"] = {
                "state": sched.state.value,
                "running": sched.running,
                "refresh_interval_seconds": sched.refresh_interval,
                "fetch_timeout_seconds": sched.fetch_timeout,
            }
        return body

    static_dir = static_dir or os.getenv("STATIC_FOLDER")
    if static_dir:
        logger.info("Serving static folder", static_dir=static_dir)
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    return app
