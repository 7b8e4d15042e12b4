from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.metrics import metrics_store
from core.policy import AuthContext
from core.security import require_admin
from models.users import UserStatus
from schemas.admin import MetricsSummary, SweepResult, UserStatusUpdate
from schemas.common import ApiResponse, Page, ok
from schemas.user import UserResponse
from service import admin_service, user_service, verification_service

router = APIRouter()


@router.get("/users", response_model=ApiResponse[Page[UserResponse]])
async def list_users(
    status: UserStatus | None = None,
    keyword: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users, total = await admin_service.list_users(db, status, keyword, page, size)
    return ok(Page[UserResponse](
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        size=size,
    ))


@router.get("/users/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: str,
    admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user(db, user_id)
    return ok(UserResponse.model_validate(user))


@router.put("/users/{user_id}/status", response_model=ApiResponse[UserResponse])
async def update_user_status(
    user_id: str,
    data: UserStatusUpdate,
    admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """계정 상태 변경. BANNED/INACTIVE 는 다음 요청부터 즉시 적용"""
    user = await admin_service.update_user_status(db, admin.user_id, user_id, data.status)
    return ok(UserResponse.model_validate(user), "계정 상태가 변경되었습니다.")


@router.post("/verification-codes/sweep", response_model=ApiResponse[SweepResult])
async def sweep_verification_codes(
    admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """만료 시각이 지난 PENDING 인증 코드를 EXPIRED로 정리"""
    expired = await verification_service.expire_stale_codes(db)
    return ok(SweepResult(expired=expired))


@router.get("/metrics", response_model=ApiResponse[MetricsSummary])
async def get_metrics(admin: AuthContext = Depends(require_admin)):
    """실시간 요청 메트릭: 총 요청 수, 응답 시간, 상태코드별 분포 등"""
    return ok(MetricsSummary(**metrics_store.summary()))
