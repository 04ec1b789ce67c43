"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.errors import (
    EmberwatchError,
    HistoryRangeError,
    NotFoundError,
    RuleValidationError,
)

app = FastAPI(
    title="Emberwatch API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


def _status_for(exc: EmberwatchError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, RuleValidationError):
        return 409
    if isinstance(exc, HistoryRangeError):
        return 422
    return 400


@app.exception_handler(EmberwatchError)
async def service_error_handler(request: Request, exc: EmberwatchError) -> JSONResponse:
    """Fallback for service errors a route did not translate itself."""
    return JSONResponse(status_code=_status_for(exc), content={"detail": exc.message})


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Emberwatch API"}
