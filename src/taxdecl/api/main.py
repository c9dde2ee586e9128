import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from starlette.responses import JSONResponse

from taxdecl import __version__
from taxdecl.api.declarations import router as declarations_router
from taxdecl.api.deps import get_db
from taxdecl.config import settings
from taxdecl.container import Container
from taxdecl.exceptions import DeclarationError, ErrorKind
from taxdecl.logging_config import configure_logging

logger = logging.getLogger("taxdecl.api")

ERROR_STATUS = {
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_PERIOD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    container = Container()
    app.state.container = container
    logger.info("Starting taxdecl API %s", __version__)
    yield
    engine = container.engine()
    await engine.dispose()


app = FastAPI(title="Tax Declarations", version=__version__, lifespan=lifespan)


@app.exception_handler(DeclarationError)
async def declaration_error_handler(request: Request, exc: DeclarationError):
    code = ERROR_STATUS.get(exc.kind, status.HTTP_400_BAD_REQUEST)
    logger.warning("%s %s rejected (%s): %s", request.method, request.url.path, exc.kind.value, exc.message)
    return JSONResponse(status_code=code, content={"detail": exc.message, "kind": exc.kind.value})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning("%s %s invalid request: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_errors(exc), "kind": ErrorKind.INVALID_INPUT.value},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(declarations_router)


@app.get("/api/health")
async def health(db: Annotated[AsyncSession, Depends(get_db)]):
    """Liveness plus a round trip to the database. 503 when the database is unreachable."""
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except (SQLAlchemyError, OSError):
        logger.exception("Health check: database unreachable")
        database = "unreachable"

    healthy = database == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if healthy else "degraded",
            "database": database,
            "version": __version__,
            "service": "taxdecl",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
