"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- Lifespan: logging, optional table creation, background components
- Middleware (logging, rate limiting, CORS)
- A single handler rendering every URLShortenerException
- API routes, with the catch-all redirect mounted last
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortener.api import auth, endpoints, oauth
from shortener.core.components import ServiceComponents
from shortener.core.exceptions import URLShortenerException
from shortener.core.logging_config import setup_logging
from shortener.core.setting import settings
from shortener.db.session import init_db
from shortener.middleware.logging import add_logging_middleware
from shortener.middleware.rate_limit import add_rate_limit_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    if settings.AUTO_CREATE_TABLES:
        await init_db()
    app.state.components.start()
    logger.info(f"URL Shortener Service started ({settings.ENV_SETTING.value})")
    try:
        yield
    finally:
        await app.state.components.stop()
        logger.info("URL Shortener Service stopped")


# Title and description are used in auto-generated API documentation
app = FastAPI(
    title="URL Shortener Service",
    description="A URL shortening service with accounts, OAuth sign-in and click analytics",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.components = ServiceComponents.from_settings(settings)


async def service_exception_handler(request: Request, exc: URLShortenerException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_code, "message": str(exc)},
    )


app.add_exception_handler(URLShortenerException, service_exception_handler)

# Added last runs first: CORS, then logging, then rate limiting
add_rate_limit_middleware(app)
add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# Health endpoints defined before router to match before catch-all route
@app.get("/", tags=["Health"])
async def root():
    return {
        "message": "URL Shortener Service",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy"}


app.include_router(auth.router, tags=["Auth"])
app.include_router(oauth.router, tags=["OAuth"])
app.include_router(endpoints.router, tags=["URLs"])
app.include_router(endpoints.redirect_router, tags=["Redirect"])
