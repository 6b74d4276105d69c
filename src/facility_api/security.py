from __future__ import annotations

from typing import Any

from fastapi import Depends, Header

from facility_api.dependencies import get_jwt_manager
from facility_api.errors import ApiError
from facility_api.jwt_utils import JWTManager


def validate_bearer_token(authorization: str | None, jwt: JWTManager) -> dict[str, Any]:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise ApiError("UNAUTHORIZED", "Missing bearer token", 401)
    token = authorization.split(" ", 1)[1].strip()
    try:
        payload = jwt.decode(token)
    except ValueError as exc:
        raise ApiError("UNAUTHORIZED", str(exc), 401) from exc
    if not payload.sub or not payload.email:
        raise ApiError("UNAUTHORIZED", "Invalid token payload", 401)
    return {"user_id": payload.sub, "email": payload.email, "name": payload.name}


async def require_authenticated(
    authorization: str | None = Header(default=None),
    jwt: JWTManager = Depends(get_jwt_manager),
) -> dict[str, Any]:
    return validate_bearer_token(authorization, jwt)
