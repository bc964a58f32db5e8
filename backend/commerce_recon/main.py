import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from commerce_recon.api.router import api_router
from commerce_recon.config import settings
from commerce_recon.dependencies import scheduler
from commerce_recon.middleware.logging import RequestLoggingMiddleware

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)

logger = logging.getLogger(__name__)


def init_sentry() -> None:
    """Report unhandled errors to Sentry when a DSN is configured."""
    if not settings.sentry_dsn:
        return
    try:
        import sentry_sdk
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=0.1,
            environment=settings.environment,
        )
        logger.info("Sentry initialized (env=%s)", settings.environment)
    except Exception as e:
        logger.warning("Failed to initialize Sentry: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_sentry()
    logger.info("Starting commerce reconciliation service (env=%s)", settings.environment)
    if settings.scheduler_enabled:
        scheduler.start()
    yield
    scheduler.stop()
    logger.info("Shutting down commerce reconciliation service")


app = FastAPI(
    title="Commerce Reconciliation Service",
    description="Reconciles Shopify orders against Razorpay payments and Easyecom orders",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix="/api")
