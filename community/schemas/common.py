from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    모든 응답의 공통 포맷

    - code: HTTP 상태 코드와 동일 (200 / 400 / 401 / 403 / 404 / 500)
    - success: code == 200 여부
    - data: 성공 시 결과 (없으면 null)
    """
    code: int = 200
    message: str = "요청이 성공했습니다."
    success: bool = True
    data: Optional[T] = None


class Page(BaseModel, Generic[T]):
    """목록 조회용 페이지 (page는 0부터 시작)"""
    items: list[T]
    total: int
    page: int
    size: int


def ok(data=None, message: str = "요청이 성공했습니다.") -> ApiResponse:
    return ApiResponse(code=200, message=message, success=True, data=data)
