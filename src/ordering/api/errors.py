"""Map domain exceptions to HTTP responses.

Every error body has the shape ``{"error": <message or field→messages map>}``.
Storage failures only ever expose a generic message.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.exceptions import TransactionError as CommitError
from protean.integrations.fastapi import register_exception_handlers as register_protean_exception_handlers

from ordering.errors import InsufficientStockError, NotFoundError, TransactionError
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def _error(status_code: int, error) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error})


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(400, exc.messages)


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = {}
    for detail in exc.errors():
        field = ".".join(str(part) for part in detail.get("loc", ()) if part != "body") or "_request"
        messages.setdefault(field, []).append(detail.get("msg", "Invalid value"))
    return _error(400, messages)


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    message = exc.message if isinstance(exc, NotFoundError) else "Resource not found"
    return _error(404, message)


async def _insufficient_stock(request: Request, exc: InsufficientStockError) -> JSONResponse:
    return _error(409, exc.messages["stock"][0])


async def _transaction_error(request: Request, exc: TransactionError) -> JSONResponse:
    logger.error("request_transaction_failed", path=request.url.path, error=exc.message)
    return _error(503, TransactionError.default_message)


async def _commit_error(request: Request, exc: CommitError) -> JSONResponse:
    logger.error("request_commit_failed", path=request.url.path, error=str(exc))
    return _error(503, TransactionError.default_message)


def register_exception_handlers(app: FastAPI) -> None:
    """Install Protean's handlers, then the ordering-specific mappings on top."""
    register_protean_exception_handlers(app)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(InsufficientStockError, _insufficient_stock)
    app.add_exception_handler(TransactionError, _transaction_error)
    app.add_exception_handler(CommitError, _commit_error)
