"""
Ошибки приложения и их преобразование в HTTP-ответы.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Базовая ошибка приложения"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.message
        # detail показываем только в development
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self, include_detail: bool = False) -> dict:
        body = {"success": False, "message": self.message}
        if include_detail and self.detail:
            body["error"] = self.detail
        return body


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input"


class DuplicateIdentity(AppError):
    """Username или email уже заняты. field - какое именно поле"""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, field: str):
        self.field = field
        message = "Username already taken" if field == "username" else "Email already registered"
        super().__init__(message)

    def to_dict(self, include_detail: bool = False) -> dict:
        body = super().to_dict(include_detail)
        body["field"] = self.field
        return body


class InvalidCredentials(AppError):
    # Одинаковый ответ и для неизвестного пользователя, и для неверного пароля
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid username or password"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class UpstreamUnavailable(AppError):
    """TMDB недоступен. Наружу 500 только из прокси"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Error fetching data from TMDB"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"


def register_exception_handlers(app: FastAPI, include_detail: bool = False):
    """Подключает обработчики ошибок к приложению"""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
        else:
            logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(include_detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid input"
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ())[1:])
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        logger.info("%s %s -> 400: %s", request.method, request.url.path, message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ValidationError(message).to_dict(),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Ошибка БД в %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        error = InternalError(detail=str(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_dict(include_detail))

    @app.exception_handler(OSError)
    async def filesystem_error_handler(request: Request, exc: OSError):
        logger.error("Ошибка файловой системы в %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        error = InternalError(detail=str(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_dict(include_detail))
