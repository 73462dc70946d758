"""
Translation of ledger errors into HTTP responses
"""

from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import LedgerError
from ..logging_config import get_logger, log_action


STATUS_BY_CODE = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INSUFFICIENT_FUNDS": status.HTTP_400_BAD_REQUEST,
    "INVALID_AMOUNT": status.HTTP_400_BAD_REQUEST,
    "INVALID_REQUEST": status.HTTP_400_BAD_REQUEST,
    "CONSTRAINT_VIOLATION": status.HTTP_409_CONFLICT,
    "TRANSACTION_ABORTED": status.HTTP_409_CONFLICT,
}

logger = get_logger("core_ledger.api")


def status_for(error: LedgerError) -> int:
    return STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def http_error(error: LedgerError) -> HTTPException:
    """HTTPException carrying the stable error code"""
    return HTTPException(
        status_code=status_for(error),
        detail={"code": error.code, "message": error.message}
    )


def _error_response(request: Request, status_code: int, code: str, message: str,
                    headers=None) -> JSONResponse:
    log_action(
        logger, "warning" if status_code < 500 else "error",
        f"{request.method} {request.url.path} - {status_code} - {message}",
        action="http_error", context=getattr(request.state, "context", None),
        extra={"code": code}
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "statusCode": status_code,
            "code": code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
        },
        headers=headers,
    )


def install_error_handlers(app: FastAPI) -> None:
    """Render every error response in one envelope"""

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if isinstance(exc.detail, dict):
            code = exc.detail.get("code", "HTTP_ERROR")
            message = exc.detail.get("message", "")
        else:
            code = "HTTP_ERROR"
            message = str(exc.detail)
        return _error_response(
            request, exc.status_code, code, message, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        else:
            message = "Invalid request"
        return _error_response(request, status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log_action(
            logger, "error", f"Unhandled error on {request.method} {request.url.path}",
            action="http_error", context=getattr(request.state, "context", None),
            extra={"error_type": type(exc).__name__}, exc_info=exc
        )
        return _error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error"
        )
