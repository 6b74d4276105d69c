from __future__ import annotations

import logging
import re
from uuid import uuid4

from facility_api.errors import ApiError
from facility_api.jwt_utils import JWTManager
from facility_api.schemas.auth import AuthUser, LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

# demo accounts: every login succeeds except this password
REJECTED_PASSWORD = "error"


class AuthService:
    def __init__(self, jwt: JWTManager) -> None:
        self._jwt = jwt

    def login(self, request: LoginRequest) -> LoginResponse:
        if request.password == REJECTED_PASSWORD:
            logger.info("login_rejected", extra={"email": request.email})
            raise ApiError("UNAUTHORIZED", "Invalid credentials", 401)
        user = AuthUser(
            id=f"user-{uuid4().hex[:9]}",
            email=request.email,
            name=display_name_from_email(request.email),
        )
        token = self._jwt.issue(user.id, user.email, user.name)
        return LoginResponse(token=token, user=user)


def display_name_from_email(email: str) -> str:
    local = email.split("@", 1)[0]
    return " ".join(part[:1].upper() + part[1:] for part in re.split(r"[._-]", local) if part)
