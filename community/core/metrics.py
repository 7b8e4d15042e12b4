import heapq
import time
from collections import Counter
from dataclasses import dataclass, field

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.logger import get_logger, generate_request_id, request_id_var

logger = get_logger("metrics")

# 라우트에 매칭되지 않은 요청(404, 405 등)은 전부 이 한 칸에 모은다
UNMATCHED_ROUTE = "<unmatched>"
SLOWEST_KEEP = 5


def route_label(request: Request) -> str:
    """
    집계 키: "METHOD 라우트 템플릿"

    /api/admin/users/abc 와 /api/admin/users/xyz 는 같은 "GET /api/admin/users/{user_id}".
    키 개수는 등록된 라우트 수를 넘지 않는다.
    """
    route = request.scope.get("route")
    methods = getattr(route, "methods", None)
    if route is None or (methods and request.method not in methods):
        return UNMATCHED_ROUTE
    return f"{request.method} {route.path}"


@dataclass(order=True)
class _SlowRequest:
    duration_ms: float
    route: str = field(compare=False)
    status: int = field(compare=False)


class MetricsStore:
    """프로세스 단위 인메모리 요청 집계 (관리자 /api/admin/metrics 로 조회)"""

    def __init__(self):
        self.reset()

    def reset(self):
        self.total_requests = 0
        self.total_duration_ms = 0.0
        self.by_status: Counter[int] = Counter()
        self.by_route: Counter[str] = Counter()
        # 최소 힙: 맨 앞이 Top N 중 가장 빠른 요청
        self._slowest: list[_SlowRequest] = []

    def record(self, route: str, status: int, duration_ms: float):
        self.total_requests += 1
        self.total_duration_ms += duration_ms
        self.by_status[status] += 1
        self.by_route[route] += 1

        entry = _SlowRequest(round(duration_ms, 1), route, status)
        if len(self._slowest) < SLOWEST_KEEP:
            heapq.heappush(self._slowest, entry)
        elif entry > self._slowest[0]:
            heapq.heapreplace(self._slowest, entry)

    def summary(self) -> dict:
        avg = round(self.total_duration_ms / self.total_requests, 1) if self.total_requests else 0
        return {
            "total_requests": self.total_requests,
            "avg_response_time_ms": avg,
            "by_status": dict(self.by_status),
            "by_route": dict(self.by_route),
            "slowest_top5": [
                {"duration_ms": s.duration_ms, "route": s.route, "status": s.status}
                for s in sorted(self._slowest, reverse=True)
            ],
        }


metrics_store = MetricsStore()


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """
    요청 계측 미들웨어

    - X-Request-ID: 들어온 값을 그대로 쓰고 없으면 새로 만든다. 응답 헤더로 돌려준다.
    - 라우트 템플릿 기준으로 집계하고 요청마다 JSON 로그 한 줄
    - 처리되지 않은 예외는 500으로 집계만 하고 다시 던진다 (응답은 예외 핸들러가 만든다)
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id = request.headers.get("X-Request-ID") or generate_request_id()
        request_id_var.set(req_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            metrics_store.record(route_label(request), 500, (time.perf_counter() - start) * 1000)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        route = route_label(request)
        metrics_store.record(route, response.status_code, duration_ms)

        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {duration_ms:.0f}ms",
            extra={"extra_data": {
                "method": request.method,
                "path": request.url.path,
                "route": route,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 1),
            }}
        )

        response.headers["X-Request-ID"] = req_id
        return response
