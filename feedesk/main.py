import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedesk.api.v1.auth.router import router as auth_router
from feedesk.api.v1.fee_config.router import router as fee_config_router
from feedesk.api.v1.notifications.router import router as notifications_router
from feedesk.api.v1.payments.router import router as payments_router
from feedesk.api.v1.receipts.router import router as receipts_router
from feedesk.api.v1.reports.router import router as reports_router
from feedesk.api.v1.students.router import router as students_router
from feedesk.core.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Fee Desk")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(students_router)
    app.include_router(payments_router)
    app.include_router(fee_config_router)
    app.include_router(receipts_router)
    app.include_router(notifications_router)
    app.include_router(reports_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
