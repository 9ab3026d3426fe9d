from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from commission_engine.core.config import settings
from commission_engine.core.errors import register_error_handlers
from commission_engine.core.logging import configure_logging
from commission_engine.db.session import Database
import commission_engine.models  # noqa: F401  # force model registration

from commission_engine.api.v1.affiliates import router as affiliates_router
from commission_engine.api.v1.conversions import router as conversions_router
from commission_engine.api.v1.fraud import router as fraud_router
from commission_engine.api.v1.payouts import router as payouts_router
from commission_engine.api.v1.revenue import router as revenue_router
from commission_engine.api.v1.tracking import router as tracking_router
from commission_engine.api.v1.webhooks import router as webhooks_router


def create_application(database: Optional[Database] = None) -> FastAPI:
    db = database or Database(settings.DATABASE_URL_ASYNC_CLEAN, echo=settings.DB_ECHO)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.LOG_LEVEL)
        db.open()
        try:
            yield
        finally:
            await db.close()

    app = FastAPI(title="Commission Engine API", lifespan=lifespan)
    app.state.database = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    @app.get("/")
    def root():
        return {"status": "ok", "service": "commission-engine"}

    # Routers
    app.include_router(webhooks_router, prefix="/api/v1")
    app.include_router(tracking_router, prefix="/api/v1")
    app.include_router(conversions_router, prefix="/api/v1")
    app.include_router(payouts_router, prefix="/api/v1")
    app.include_router(affiliates_router, prefix="/api/v1")
    app.include_router(revenue_router, prefix="/api/v1")
    app.include_router(fraud_router, prefix="/api/v1")

    return app


app = create_application()
