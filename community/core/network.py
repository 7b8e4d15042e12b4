from starlette.requests import Request


def get_client_ip(request: Request) -> str | None:
    """
    실제 클라이언트 IP

    프록시 뒤에서는 X-Forwarded-For 첫 번째 값 → X-Real-IP → 소켓 주소 순으로 본다.
    값이 "unknown"이면 무시.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for and forwarded_for.lower() != "unknown":
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.lower() != "unknown":
        return real_ip

    return request.client.host if request.client else None
