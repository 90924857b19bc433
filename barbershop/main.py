# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from barbershop.config import LOG_LEVEL
from barbershop.core.errors import SchedulingError
from barbershop.db import init_db
from barbershop.routers import (
    appointments_routes,
    auth_routes,
    barbers_routes,
    reports_routes,
    services_routes,
    settings_routes,
    subscriptions_routes,
    users_routes,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Barbershop API started")
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Barbershop Scheduling API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    log = logger.info if exc.status_code == 404 else logger.warning
    log(f"{request.method} {request.url.path} rejected: {exc.code} {exc.detail} {exc.context}")
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({"detail": exc.detail, "error": exc.code, "context": exc.context}),
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(barbers_routes.router)
app.include_router(services_routes.router)
app.include_router(appointments_routes.router)
app.include_router(subscriptions_routes.router)
app.include_router(reports_routes.router)
app.include_router(settings_routes.router)
