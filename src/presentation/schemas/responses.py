from typing import TypeVar
from pydantic import BaseModel

DataT = TypeVar('DataT')


class ResponseModel[DataT](BaseModel):
    """
    Envelope of every API response.
    On failure `error` holds a stable reason code (e.g. `rank_violation`) and `message` the human text.
    """

    success: bool
    message: str | None = None
    data: DataT | None = None
    error: str | None = None


def response_success[DataT](
    data: DataT,
    message: str | None = None,
) -> ResponseModel[DataT]:
    """Create success response"""
    return ResponseModel(
        success=True,
        message=message,
        data=data,
        error=None,
    ).model_dump()


def response_error(
    error: str,
    message: str | None = None,
) -> ResponseModel[None]:
    """Create error response"""
    return ResponseModel(
        success=False,
        message=message,
        error=error,
        data=None,
    ).model_dump()
