from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.db import engine
from app.core.schema import SchemaReconciler
from app.services.experience_level import ExperienceLevelService
from app.utils.exception_handlers import (
    general_exception_handler,
    http_exception_handler,
    store_exception_handler,
    validation_exception_handler,
)
from app.utils.router_discovery import register_routers


async def prepare_database(db_engine: AsyncEngine) -> None:
    """Reconcile the schema and seed the static level table."""
    changes = await SchemaReconciler(db_engine).reconcile()
    logger.info(f"Schema reconciled, {len(changes)} change(s) applied")

    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        await ExperienceLevelService(db=session).seed()


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None]:
    app.state.schema_ready = False
    try:
        await prepare_database(engine)
    except (SQLAlchemyError, OSError):
        # Unreachable hosts surface as bare OSErrors from the driver
        logger.exception("Database initialization failed, serving with an unverified schema")
        if settings.schema_fail_fast:
            raise
    else:
        app.state.schema_ready = True

    yield

    await engine.dispose()


app = FastAPI(title="WebApp Game API", lifespan=app_lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=settings.cors_methods,
    allow_headers=settings.cors_headers,
)


register_routers(app)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, store_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.get("/", response_class=PlainTextResponse)
async def healthz() -> str:
    return "Telegram WebApp Server is running!"


@app.get("/ready", response_class=PlainTextResponse)
async def readyz(request: Request) -> PlainTextResponse:
    if getattr(request.app.state, "schema_ready", False):
        return PlainTextResponse("OK")
    return PlainTextResponse("Schema not ready", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
