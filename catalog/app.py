from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .artists import router as artists_router
from .config import Settings, load_settings
from .health import router as health_router
from .logger import configure_logging, get_logger
from .rate_limiter import RateLimiter, rate_limit
from .releases import router as releases_router
from .resolver import InvalidIdentifier
from .store import RestClient, SupabaseStore
from .strategies import build_chains
from .tracks import router as tracks_router

logger = get_logger(__name__)

_UNSET: Any = object()


def create_app(settings: Optional[Settings] = None, store: Any = _UNSET, rest: Any = _UNSET) -> FastAPI:
    """Build the FastAPI application.

    ``store`` and ``rest`` default to clients built from ``settings``; pass
    them explicitly (``None`` included) to run against something else.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Label Catalog")
    app.state.settings = settings
    app.state.store = SupabaseStore.from_settings(settings) if store is _UNSET else store
    app.state.rest = RestClient.from_settings(settings) if rest is _UNSET else rest
    app.state.chains = build_chains(settings)
    app.state.rate_limiter = RateLimiter(
        settings.rate_limit_per_minute, settings.rate_limit_whitelist, settings.rate_limit_max_clients
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-API-Key"],
        max_age=600,
    )

    @app.exception_handler(InvalidIdentifier)
    async def invalid_identifier(request: Request, exc: InvalidIdentifier):
        return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"success": False, "message": str(exc)[:300]})

    # include routers
    limited = [Depends(rate_limit)]
    app.include_router(artists_router, dependencies=limited)
    app.include_router(releases_router, dependencies=limited)
    app.include_router(tracks_router, dependencies=limited)
    app.include_router(health_router)

    @app.get("/")
    def read_root():
        return {"message": "Label catalog backend"}

    return app
