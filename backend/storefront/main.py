import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from storefront.config import Settings, get_settings
from storefront.database import init_db
from storefront.dependencies import Services, client_key
from storefront.errors import register_exception_handlers
from storefront.routers import admin, categories, leads, products, quotes, search
from storefront.services.rate_limit import RATE_LIMIT_MESSAGE

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database, upload directory and rate limit store on startup."""
    services: Services = app.state.services
    settings = services.settings

    logging.basicConfig(level=settings.log_level.upper())
    logger.info("Starting up... Initializing database")
    init_db(services.engine, seed=settings.seed_on_startup)
    services.images.ensure_directories()
    await services.rate_limit_store.connect()
    yield
    logger.info("Shutting down...")
    await services.rate_limit_store.disconnect()
    services.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Nishyash API",
        description="Catalogue, leads and quote requests for Nishyash corporate gifting",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = Services.from_settings(settings)

    register_exception_handlers(app)

    @app.middleware("http")
    async def general_rate_limit(request: Request, call_next):
        limiter = request.app.state.services.general_limiter
        result = await limiter.hit(client_key(request))
        if not result.allowed:
            return JSONResponse(
                status_code=429,
                content={"message": RATE_LIMIT_MESSAGE},
                headers=limiter.headers(result),
            )
        response = await call_next(request)
        response.headers.update(limiter.headers(result))
        return response

    # CORS middleware (added last so it also wraps rate limited responses)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Legacy local uploads
    app.mount(
        settings.uploads_url_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )

    # Include routers
    app.include_router(leads.router, prefix=settings.api_prefix)
    app.include_router(quotes.router, prefix=settings.api_prefix)
    app.include_router(categories.router, prefix=settings.api_prefix)
    app.include_router(categories.admin_router, prefix=settings.api_prefix)
    app.include_router(products.router, prefix=settings.api_prefix)
    app.include_router(products.admin_router, prefix=settings.api_prefix)
    app.include_router(search.router, prefix=settings.api_prefix)
    app.include_router(admin.router, prefix=settings.api_prefix)

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok", "message": "Nishyash API is running"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storefront.main:app", host="0.0.0.0", port=get_settings().port)
