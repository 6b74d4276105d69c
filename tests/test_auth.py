from datetime import datetime, timedelta, timezone

import pytest

from facility_api.errors import ApiError
from facility_api.jwt_utils import JWTManager
from facility_api.schemas.auth import LoginRequest
from facility_api.security import validate_bearer_token
from facility_api.services.auth_service import AuthService, display_name_from_email


def test_issue_and_decode_token() -> None:
    jwt = JWTManager(secret="test-secret")

    payload = jwt.decode(jwt.issue("user-1", "jane.doe@example.com", "Jane Doe"))

    assert payload.sub == "user-1"
    assert payload.email == "jane.doe@example.com"
    assert payload.exp - payload.iat == 3600


def test_token_signed_with_other_secret_is_rejected() -> None:
    token = JWTManager(secret="one").issue("user-1", "a@example.com", "A")

    with pytest.raises(ValueError, match="signature"):
        JWTManager(secret="two").decode(token)


def test_expired_token_is_rejected() -> None:
    jwt = JWTManager(secret="test-secret", expires_in_seconds=60)
    token = jwt.issue("user-1", "a@example.com", "A", now=datetime.now(timezone.utc) - timedelta(hours=1))

    with pytest.raises(ValueError, match="expired"):
        jwt.decode(token)


def test_malformed_token_is_rejected() -> None:
    with pytest.raises(ValueError):
        JWTManager(secret="test-secret").decode("not-a-token")


@pytest.mark.parametrize("token", ["a.b.\xe9", "\xe9.b.c", "a.b.\u00e9t\u00e9"])
def test_non_ascii_token_is_malformed(token: str) -> None:
    with pytest.raises(ValueError, match="malformed"):
        JWTManager(secret="test-secret").decode(token)


def test_empty_secret_is_rejected() -> None:
    with pytest.raises(ValueError):
        JWTManager(secret="")


def test_login_issues_token_for_mock_user() -> None:
    jwt = JWTManager(secret="test-secret")

    response = AuthService(jwt).login(LoginRequest(email="john.doe@example.com", password="secret123"))

    assert response.user.name == "John Doe"
    assert response.user.id.startswith("user-")
    assert jwt.decode(response.token).sub == response.user.id


def test_login_rejects_error_password() -> None:
    with pytest.raises(ApiError) as exc_info:
        AuthService(JWTManager(secret="s")).login(LoginRequest.model_construct(email="a@example.com", password="error"))

    assert exc_info.value.status_code == 401


def test_display_name_from_email() -> None:
    assert display_name_from_email("mary-ann_smith@example.com") == "Mary Ann Smith"


def test_validate_bearer_token() -> None:
    jwt = JWTManager(secret="s")
    token = jwt.issue("user-1", "a@example.com", "A")

    auth = validate_bearer_token(f"Bearer {token}", jwt)

    assert auth["user_id"] == "user-1"
    with pytest.raises(ApiError):
        validate_bearer_token(None, jwt)
    with pytest.raises(ApiError):
        validate_bearer_token(f"Bearer {jwt.issue('', 'a@example.com', 'A')}", jwt)
