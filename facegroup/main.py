import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from facegroup.config import settings
from facegroup.core.errors import AppError, app_error_handler
from facegroup.core.middleware import ErrorEnvelopeMiddleware
from facegroup.core.rate_limit import limiter
from facegroup.db import init_db, close_db
from facegroup.routers import router
from facegroup.services.metrics import metrics_middleware, metrics_endpoint

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
log = logging.getLogger("facegroup")

if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN, traces_sample_rate=0.1, environment=settings.APP_ENV)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Starting FaceGroup clustering service...")
    await init_db()
    yield
    log.info("Shutting down FaceGroup clustering service...")
    await close_db()


app = FastAPI(
    title="FaceGroup API",
    description="Groups shared photos by the people appearing in them",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(AppError, app_error_handler)

app.include_router(router)

app.add_middleware(ErrorEnvelopeMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Enable Prometheus metrics if METRICS_ENABLED=1
metrics_middleware(app)


@app.get("/metrics")
async def prometheus_metrics():
    return await metrics_endpoint()
