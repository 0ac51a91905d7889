from collections.abc import Callable
import time
from typing import Any, Literal
import uuid

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.logging import get_logger
from src.presentation.schemas.responses import response_error

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.
    Every response carries the request's trace id and execution time in headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        context = await self.get_context(request)
        await logger.ainfo(
            f"Request started on {request.method} {request.url.path}", context=context
        )

        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            await self.create_final_log("failed", request, context, start_time, 500, e)
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": response_error(error="internal_error", message="Internal server error")},
            )
        else:
            context["response_size"] = self.get_response_size(response)
            result = "successful" if response.status_code < status.HTTP_400_BAD_REQUEST else "failed"
            await self.create_final_log(result, request, context, start_time, response.status_code)

        response.headers["X-TRACE-ID"] = context["trace_id"]
        response.headers["X-PROCESS-TIME"] = context["process_time"]
        return response

    @staticmethod
    def get_response_size(response: Response) -> int:
        response_size = response.headers.get("Content-Length")
        if response_size and response_size.isdigit():
            return int(response_size)
        return 0

    @staticmethod
    async def create_final_log(  # noqa: PLR0913
        msg: Literal["successful", "failed"],
        request: Request,
        context: dict,
        start_time: float,
        status_code: int,
        e: Exception | None = None,
    ) -> None:
        process_time = time.perf_counter() - start_time
        context["process_time"] = f"{process_time:.4f}"
        context["response_status"] = status_code

        if msg == "successful":
            await logger.ainfo(
                f"Request completed {request.method} {request.url.path}", context=context
            )
        elif e is None:
            await logger.awarning(
                f"Request rejected {request.method} {request.url.path}", context=context
            )
        else:
            await logger.aerror(
                f"Request failed {request.method} {request.url.path}", context=context, exc_info=e
            )

    @staticmethod
    async def get_context(request: Request) -> dict[str, Any]:
        body = await request.body()
        client = request.client

        return {
            "trace_id": str(uuid.uuid4()),
            "client": {
                "ip_address": client.host if client else None,
                "port": client.port if client else None,
                "user-agent": request.headers.get("User-Agent"),
            },
            "request": {
                "body": body.decode(errors="replace"),
                "query": str(request.query_params),
                "authorization": request.headers.get("Authorization"),
            },
        }
