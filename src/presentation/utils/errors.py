from fastapi import HTTPException, status

from src.core.exceptions import AppError, ConflictError, ForbiddenError, NotFoundError, RequestValidationError
from src.presentation.schemas.responses import response_error

APP_ERROR_STATUS: dict[type[AppError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
    RequestValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def raise_http_exception(
    status_code: int = status.HTTP_400_BAD_REQUEST,
    message: str = 'Operation failed',
    error: str | Exception = '',
) -> None:
    """
    Raise HTTP exception with standardized format

    Args:
        status_code: HTTP status code
        message: Human-readable message
        error: Error details or exception
    """
    error_str = str(error) if error else message

    raise HTTPException(status_code=status_code, detail=response_error(error=error_str, message=message))


def raise_app_error(error: AppError) -> None:
    """
    Raise HTTP exception for a domain error.
    The envelope's `error` carries the denial reason, `message` the human text.
    """
    status_code = next(
        (code for error_type, code in APP_ERROR_STATUS.items() if isinstance(error, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    raise_http_exception(status_code=status_code, message=error.message, error=error.reason.value)


def raise_unauthorized_error(message: str = 'Unauthorized') -> None:
    raise_http_exception(status_code=status.HTTP_401_UNAUTHORIZED, message=message)
