"""
인증 관련 테스트
"""
import uuid

import pytest

from conftest import TEST_PASSWORD, bearer
from core.password import check_password_strength, get_password_hash, verify_password
from models.users import UserStatus


# ===== 단위 테스트 =====

def test_비밀번호_해싱_성공():
    password = "MyPassword123!"
    hashed = get_password_hash(password)
    assert hashed != password
    assert hashed.startswith("$2")


def test_비밀번호_해싱_매번_다른_솔트():
    password = "MyPassword123!"
    assert get_password_hash(password) != get_password_hash(password)


def test_비밀번호_검증_성공():
    password = "MyPassword123!"
    hashed = get_password_hash(password)
    assert verify_password(password, hashed) is True


def test_비밀번호_검증_실패():
    hashed = get_password_hash("correct")
    assert verify_password("wrong", hashed) is False


def test_printable_ascii_전체_검증():
    password = "".join(chr(c) for c in range(33, 105))  # 72자, 72바이트
    hashed = get_password_hash(password)
    assert verify_password(password, hashed) is True
    assert verify_password(password[:-1] + "~", hashed) is False


@pytest.mark.parametrize("broken", ["", "not-a-hash", "$2b$04$short"])
def test_깨진_해시는_예외없이_False(broken):
    assert verify_password("whatever1!", broken) is False


def test_비밀번호_규칙():
    assert check_password_strength("Strong1234!") == "Strong1234!"
    for weak in ["Sh1!", "nodigits!!", "nospecial12", "12345678!", "A1!" + "a" * 70]:
        with pytest.raises(ValueError):
            check_password_strength(weak)


# ===== API 테스트 =====

def _register(client, unique: str, password: str = TEST_PASSWORD):
    return client.post("/api/auth/register", json={
        "username": f"signup_{unique}",
        "email": f"signup_{unique}@example.com",
        "password": password,
        "confirm_password": password,
    })


def test_회원가입_성공(client):
    unique = uuid.uuid4().hex[:6]
    response = _register(client, unique)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["code"] == 200
    assert body["data"]["username"] == f"signup_{unique}"
    assert body["data"]["role"] == "USER"
    assert body["data"]["status"] == "ACTIVE"
    assert body["data"]["email_verified"] is False
    assert "hashed_password" not in body["data"]


def test_회원가입_중복_이메일(client):
    """같은 이메일로 두 번 가입하면 400"""
    unique = uuid.uuid4().hex[:6]
    client.post("/api/auth/register", json={
        "username": f"dup1_{unique}",
        "email": f"dup_{unique}@example.com",
        "password": TEST_PASSWORD,
        "confirm_password": TEST_PASSWORD,
    })
    # 같은 이메일로 다시 가입 시도
    response = client.post("/api/auth/register", json={
        "username": f"dup2_{unique}",
        "email": f"dup_{unique}@example.com",
        "password": TEST_PASSWORD,
        "confirm_password": TEST_PASSWORD,
    })
    assert response.status_code == 400
    assert response.json() == {
        "code": 400,
        "message": "이미 가입된 이메일입니다.",
        "success": False,
        "data": None,
    }


def test_회원가입_비밀번호_확인_불일치(client):
    response = client.post("/api/auth/register", json={
        "username": "mismatch",
        "email": "mismatch@example.com",
        "password": TEST_PASSWORD,
        "confirm_password": "Other1234!",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "두 비밀번호가 일치하지 않습니다."


def test_회원가입_약한_비밀번호는_검증_오류(client):
    response = _register(client, uuid.uuid4().hex[:6], password="weak")
    assert response.status_code == 400
    assert response.json()["message"].startswith("파라미터 검증 실패")


def test_로그인_후_내_정보_조회(client):
    unique = uuid.uuid4().hex[:6]
    _register(client, unique)

    response = client.post("/api/auth/login", json={
        "username": f"signup_{unique}",
        "password": TEST_PASSWORD,
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["last_login_time"] is not None

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["username"] == f"signup_{unique}"


def test_로그인_실패_비밀번호_틀림(client):
    unique = uuid.uuid4().hex[:6]
    _register(client, unique)

    response = client.post("/api/auth/login", json={
        "username": f"signup_{unique}",
        "password": "Wrong1234!",
    })
    assert response.status_code == 401
    assert response.json()["message"] == "아이디 또는 비밀번호가 올바르지 않습니다."


def test_로그인_실패_없는_유저는_같은_메시지(client):
    response = client.post("/api/auth/login", json={"username": "ghost", "password": TEST_PASSWORD})
    assert response.status_code == 401
    assert response.json()["message"] == "아이디 또는 비밀번호가 올바르지 않습니다."


@pytest.mark.parametrize("status", [UserStatus.BANNED, UserStatus.INACTIVE])
def test_차단_비활성_계정은_로그인_불가(client, make_user, status):
    user = make_user(status=status)
    response = client.post("/api/auth/login", json={"username": user.username, "password": TEST_PASSWORD})
    assert response.status_code == 401
    assert response.json()["message"] == "사용할 수 없는 계정입니다."


def test_로그아웃(client, make_user):
    user = make_user()
    assert client.post("/api/auth/logout", headers=bearer(user)).status_code == 200
    assert client.post("/api/auth/logout").status_code == 401
