"""
Domain errors and their HTTP translation.

Services raise these; the handlers installed by ``register_exception_handlers``
turn them into ``{"error": ..., "code": ...}`` JSON bodies.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DataError, DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from goldshop.core.config import Settings


logger = logging.getLogger(__name__)


class GoldShopError(Exception):
    """Base exception for all business logic errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL"

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(self.message)

    def payload(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class InvalidInput(GoldShopError):
    """Bad or missing request fields; the caller can correct them."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_INPUT"


class NotFound(GoldShopError):
    """Raised when a requested resource doesn't exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class StoreUnavailable(GoldShopError):
    """The database could not be reached or timed out."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORE_UNAVAILABLE"

    def __init__(self, message: str = "Database unavailable"):
        super().__init__(message)


class Internal(GoldShopError):
    pass


class RecalculationAborted(Internal):
    """A gold price batch failed part way and was rolled back as a whole."""

    code = "RECALCULATION_ABORTED"

    def __init__(self, processed: int, total: int, failed_product_id: Optional[int], reason: str):
        self.processed = processed
        self.total = total
        self.failed_product_id = failed_product_id
        self.reason = reason
        super().__init__(
            f"Price update rolled back after {processed} of {total} products"
            f" (failed on product {failed_product_id})"
        )

    def payload(self) -> Dict[str, Any]:
        body = super().payload()
        body.update(
            {
                "updated_count": 0,
                "processed": self.processed,
                "total": self.total,
                "failed_product_id": self.failed_product_id,
            }
        )
        return body


def _error_response(status_code: int, body: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body)


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(GoldShopError)
    async def handle_domain_error(request: Request, exc: GoldShopError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error_response(exc.status_code, exc.payload())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            {"error": _describe_validation_error(exc), "code": InvalidInput.code},
        )

    async def handle_store_error(request: Request, exc: Exception):
        logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(
            StoreUnavailable.status_code,
            StoreUnavailable().payload(),
        )

    for exc_class in (OperationalError, PoolTimeoutError, DisconnectionError):
        app.add_exception_handler(exc_class, handle_store_error)

    @app.exception_handler(DataError)
    async def handle_data_error(request: Request, exc: DataError):
        # Values the database rejects (numeric overflow, bad encoding) are caller errors
        logger.warning("Rejected value on %s %s: %s", request.method, request.url.path, exc.orig)
        return _error_response(
            InvalidInput.status_code,
            {"error": "Value out of range for a stored field", "code": InvalidInput.code},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = str(exc) if settings.is_dev else "Internal server error"
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"error": message, "code": Internal.code},
        )
