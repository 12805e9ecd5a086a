"""Main FastAPI application for authgate"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog
from authgate.config import settings
from authgate.api.routes import auth, oauth, user
from authgate.database.client import graphql_client
from authgate.middleware.rate_limiting import init_redis
from authgate.monitoring.metrics import router as metrics_router
from authgate.monitoring.sentry_config import init_sentry
from authgate.services.oauth import register_default_providers

logger = structlog.get_logger()


def configure_logging():
    """Filter structlog output at LOG_LEVEL"""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
            if settings.APP_ENV == "development"
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.LOG_LEVEL.upper())
        ),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    configure_logging()
    logger.info("authgate starting up", app_env=settings.APP_ENV)
    init_redis()
    register_default_providers()
    if init_sentry():
        logger.info("sentry_initialized")

    yield

    await graphql_client.close()
    logger.info("authgate shutting down")


app = FastAPI(
    title="authgate API",
    description="Authentication service for a GraphQL backend",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, tags=["auth"])
app.include_router(oauth.router)
app.include_router(user.router, tags=["user"])
app.include_router(metrics_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "authgate"}
