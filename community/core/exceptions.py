from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logger import get_logger
from schemas.common import ApiResponse

logger = get_logger("errors")


class AppError(Exception):
    """
    도메인 예외의 부모 클래스

    서비스 계층은 HTTPException 대신 이 예외들을 던지고,
    register_exception_handlers()가 공통 응답 포맷 {code, message, success, data}로 변환한다.
    """
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """저장소 접근 전에 걸러지는 입력 형식 오류"""


class BusinessError(AppError):
    """중복 가입, 비밀번호 불일치 등 업무 규칙 위반"""


class RateLimitedError(AppError):
    """인증 코드를 너무 자주 요청함"""


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidTokenError(AuthenticationError):
    """서명 불일치 / 형식 오류 / 만료를 구분하지 않는다"""

    def __init__(self, message: str = "유효하지 않거나 만료된 토큰입니다."):
        super().__init__(message)


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class MailDeliveryError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, message: str) -> JSONResponse:
    body = ApiResponse(code=status_code, message=message, success=False)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info(
        f"{request.method} {request.url.path} → {exc.status_code} {type(exc).__name__}",
        extra={"extra_data": {"status": exc.status_code, "error": type(exc).__name__}},
    )
    return error_response(exc.status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err.get("loc", ()) if loc != "body")
        messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return error_response(status.HTTP_400_BAD_REQUEST, "파라미터 검증 실패: " + ", ".join(messages))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # 내부 정보는 로그에만 남기고 클라이언트에는 메시지만 전달
    logger.exception(f"처리되지 않은 예외: {request.method} {request.url.path}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "서버 내부 오류가 발생했습니다.")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
