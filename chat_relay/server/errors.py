"""Relay error taxonomy and the FastAPI handlers that render it."""
from typing import Iterable, List, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from .logging_config import configure_logging

logger = configure_logging()


class ChatRelayError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail


class ValidationError(ChatRelayError):
    """Input violated a schema; carries every violation, not just the first."""

    status_code = 422

    def __init__(self, errors: Sequence[str]):
        super().__init__("; ".join(errors))
        self.errors: List[str] = list(errors)


class ConflictError(ChatRelayError):
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(ChatRelayError):
    status_code = status.HTTP_404_NOT_FOUND


class MissingIdentityError(NotFoundError):
    pass


class UnauthorizedSenderError(ChatRelayError):
    status_code = 422


class StorageError(ChatRelayError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def format_validation_errors(errors: Iterable[dict]) -> List[str]:
    """Turn pydantic error dicts into ``"field: reason"`` strings, in order."""
    messages: List[str] = []
    for error in errors:
        # drop the "body"/"query"/"header" prefix FastAPI puts on locations
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "header")]
        field = ".".join(loc)
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return messages


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.errors)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = format_validation_errors(exc.errors())
    logger.info("VALIDATION_FAILED path=%s errors=%s", request.url.path, errors)
    return JSONResponse(status_code=422, content=errors)


async def _storage_error_handler(request: Request, exc: StorageError) -> PlainTextResponse:
    return PlainTextResponse(exc.detail, status_code=exc.status_code)


async def _relay_error_handler(request: Request, exc: ChatRelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def register_error_handlers(app: FastAPI) -> None:
    # Starlette picks the handler registered for the most specific class in the MRO.
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(StorageError, _storage_error_handler)
    app.add_exception_handler(ChatRelayError, _relay_error_handler)
