"""
Error taxonomy and the handlers that turn it into the API envelope.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

SERVER_ERROR = "Wystąpił błąd serwera"
INVALID_INPUT = "Nieprawidłowe dane wejściowe"
UNAUTHORIZED = "Nieautoryzowany"
NOT_FOUND = "Nie znaleziono"

# error types raised by our own validators; their messages are safe to show
LOCALIZED_ERROR_TYPE = "localized"


class ApiError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = UNAUTHORIZED):
        super().__init__(message)


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


def error_response(message: str, status_code: int, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message}, headers=headers)


def first_error_message(errors) -> str:
    if errors and errors[0].get("type") == LOCALIZED_ERROR_TYPE:
        return errors[0]["msg"]
    return INVALID_INPUT


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        return error_response(exc.message, exc.status_code, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return error_response(first_error_message(exc.errors()), status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        message = NOT_FOUND if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
        return error_response(message, exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(SERVER_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)
