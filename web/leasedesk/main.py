"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sqlalchemy import select

from .core import BaseError, get_settings
from .infrastructure.database import engine
from .deps import SessionDep, get_notifier
from .models import Base
from .rate_limit import limiter
from .api.v1.api import api_v1_router
from .api.v1.middleware import (
    base_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)

# Rate limiting
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Lease desk started")

    yield

    # Shutdown: let pending notifications go out before the loop stops
    await get_notifier().drain()
    await engine.dispose()


# Create FastAPI app
app = FastAPI(
    title="Lease Desk API",
    description="Apartment rent and purchase request workflow",
    version="1.0.0",
    lifespan=lifespan
)

# Attach rate-limiter
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"]
)

# Rate limiting
@app.exception_handler(RateLimitExceeded)
async def ratelimit_handler(request: Request, exc: RateLimitExceeded):
    return PlainTextResponse("Too many requests", status_code=429)

app.add_middleware(SlowAPIMiddleware)

# Exception handling
app.add_exception_handler(BaseError, base_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Include v1 API with all endpoints
app.include_router(api_v1_router, prefix="/api/v1")


# Health check
@app.get("/healthz")
async def healthz(sess: SessionDep):
    """Health check endpoint."""
    status = {"db": "ok"}

    try:
        await sess.scalar(select(1))
    except Exception:
        logger.exception("Health check: database unreachable")
        status["db"] = "error"

    return status
