"""
QR Menu Order Service - FastAPI entrypoint
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from qrmenu import models  # noqa: F401  (registers tables on Base.metadata)
from qrmenu.core.config import get_settings
from qrmenu.core.redis_client import close_redis
from qrmenu.db.database import engine, Base
from qrmenu.middleware.auth import JWTAuthMiddleware
from qrmenu.middleware.idempotency import IdempotencyMiddleware
from qrmenu.api import admin, campaigns, health, orders, payments, stock

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables (migrations are out of band in production)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    # Shutdown
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="QR Menu Order Service",
    description="Restaurant QR-menu orders: stock reservation on confirmation, coupons at checkout.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Added last runs first: JWT auth wraps idempotency (checkout itself is public)
app.add_middleware(IdempotencyMiddleware)
app.add_middleware(JWTAuthMiddleware)

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

app.include_router(orders.router)
app.include_router(campaigns.router)
app.include_router(payments.router)
app.include_router(stock.router)
app.include_router(admin.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
