"""전역 예외 핸들러.

모든 에러를 {"error": "...", "status": <code>} 형식의 JSON 응답으로 변환한다.
AppException 계열은 error_code도 함께 내려준다.
main.py의 create_app()에서 register_exception_handlers()로 등록한다.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import AppException


def _envelope(
    status_code: int,
    error: str,
    error_code: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content = {"error": error, "status": status_code}
    if error_code:
        content["error_code"] = error_code
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} | {exc.error_code}: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} | {exc.error_code}: {exc.message}")
    return _envelope(exc.status_code, exc.message, exc.error_code)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # pydantic 검증 실패(필드 누락 등)도 422가 아니라 400으로 통일한다
    fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
    logger.warning(f"{request.method} {request.url.path} | invalid body: {fields}")
    return _envelope(400, f"요청 값이 올바르지 않습니다: {', '.join(fields)}", "VALIDATION_ERROR")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # 405의 Allow 같은 헤더는 그대로 전달한다
    headers = getattr(exc, "headers", None)
    if exc.status_code == 404:
        return _envelope(404, "Not found", headers=headers)
    return _envelope(exc.status_code, str(exc.detail), headers=headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} | unhandled: {exc!r}")
    return _envelope(500, "Internal server error", "INTERNAL_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
