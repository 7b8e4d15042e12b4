from fastapi import Depends, FastAPI
from contextlib import asynccontextmanager
from core.dependencies import init_connections, close_connections
from core.database import async_session, engine
from core.exceptions import register_exception_handlers
from core.metrics import RequestMetricsMiddleware
from core.security import enforce_route_policy
from router import admin, auth, user
from schemas.common import ApiResponse, ok
from service.admin_service import ensure_admin_account


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await init_connections()
        async with async_session() as db:
            await ensure_admin_account(db)
        yield
    finally:
        await close_connections()
        # DB 연결 풀 정리
        await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Community API",
        description="커뮤니티 백엔드: 계정, 인증/인가, 이메일 인증 코드",
        version="0.1.0",
        lifespan=lifespan,
        # 인증 게이트 + 경로 정책: 모든 라우트에 적용 (401 / 403)
        dependencies=[Depends(enforce_route_policy)],
    )

    # 미들웨어 등록 (모든 요청을 자동 계측)
    app.add_middleware(RequestMetricsMiddleware)
    register_exception_handlers(app)

    app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(user.router, prefix="/api/user", tags=["User"])
    app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])

    @app.get("/health", response_model=ApiResponse)
    async def health():
        return ok({"status": "ok"})

    return app


app = create_app()
