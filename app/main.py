"""FastAPI application entrypoint. No business logic; only wiring, error rendering and startup."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.concurrency import run_in_threadpool

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.database import SessionLocal, engine
from app.core.errors import Conflict, InvalidInput, ServiceError, ServiceUnavailable, Unauthenticated
from app.models import Base
from app.services.accounts import ensure_bootstrap_admin

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def _startup() -> None:
    if settings.DB_AUTO_CREATE:
        Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_bootstrap_admin(db, settings)
    except OperationalError as e:
        logger.error("Bootstrap admin check failed; database unavailable: %s", e)
    except Conflict:
        # Another worker created the bootstrap admin first.
        logger.warning("Bootstrap admin already created by another process; skipping")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    await run_in_threadpool(_startup)
    yield


app = FastAPI(
    title="Credits API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    """Render taxonomy errors as {"detail": {"kind", "message"}} with the mapped status."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_dict()},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    err = InvalidInput("Request body or parameters are invalid.")
    content = {"detail": {**err.to_dict(), "errors": jsonable_encoder(exc.errors())}}
    return JSONResponse(status_code=err.status_code, content=content)


@app.exception_handler(OperationalError)
async def storage_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    err = ServiceUnavailable()
    return JSONResponse(status_code=err.status_code, content={"detail": err.to_dict()})


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Credits API"}
