from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from pos_edge.api.v1.deps import CheckoutRegistry
from pos_edge.api.v1.routes_checkout import router as checkout_router
from pos_edge.api.v1.routes_codes import router as codes_router
from pos_edge.core.config import settings
from pos_edge.core.errors import (
    DuplicateCodeError,
    InsufficientPaymentError,
    NotFoundError,
    PosError,
    RepositoryUnavailableError,
    ValidationError,
)
from pos_edge.core.logging import configure_logging

configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
logger = structlog.get_logger(__name__)

ERROR_STATUS = {
    ValidationError: 422,
    InsufficientPaymentError: 402,
    NotFoundError: 404,
    DuplicateCodeError: 409,
    RepositoryUnavailableError: 503,
}

app = FastAPI(title="pos-edge")
app.state.checkouts = CheckoutRegistry()

app.include_router(checkout_router)
app.include_router(codes_router)


@app.exception_handler(PosError)
async def pos_error_handler(request: Request, exc: PosError):
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)),
        400,
    )
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
