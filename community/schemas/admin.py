from pydantic import BaseModel

from models.users import UserStatus


class UserStatusUpdate(BaseModel):
    status: UserStatus


class SweepResult(BaseModel):
    expired: int


class MetricsSummary(BaseModel):
    total_requests: int
    avg_response_time_ms: float
    by_status: dict[int, int]
    by_route: dict[str, int]
    slowest_top5: list[dict]
