import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from scorekings.core.config import settings
from scorekings.core.errors import LedgerError
from scorekings.core.logging import configure_logging
from scorekings.db.init_db import init_db
from scorekings.db.session import engine
from scorekings.api.admin import router as admin_router
from scorekings.api.auth import router as auth_router
from scorekings.api.contests import router as contests_router
from scorekings.api.wallet import router as wallet_router

API_VERSION = "1"

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)
    yield


app = FastAPI(title="ScoreKings Ledger API", version=f"{API_VERSION}.0.0", lifespan=lifespan)


def _first_error(errors) -> str:
    # extract first error message nicely
    if not errors:
        return "Invalid input"
    err = errors[0]
    field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
    return f"{field}: {err['msg']}" if field else err["msg"]


@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _first_error(exc.errors()), "code": "ValidationError"},
    )


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _first_error(exc.errors()), "code": "ValidationError"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "code": "InternalError"},
    )


@app.middleware("http")
async def api_version_header(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-API-Version"] = API_VERSION
    return response


app.include_router(auth_router, tags=["auth"])
app.include_router(contests_router, tags=["contests"])
app.include_router(wallet_router, tags=["wallet"])
app.include_router(admin_router, tags=["admin"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["system"])
def health_check():
    return {"status": "healthy", "service": "scorekings-ledger", "version": API_VERSION}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
