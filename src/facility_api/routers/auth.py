from __future__ import annotations

from fastapi import APIRouter, Depends

from facility_api.dependencies import get_auth_service
from facility_api.response import success_response
from facility_api.schemas.auth import LoginRequest
from facility_api.services.auth_service import AuthService

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/login")
async def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)) -> dict:
    return success_response(service.login(payload).model_dump(), meta={})
