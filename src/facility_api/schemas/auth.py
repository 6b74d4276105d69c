from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6, max_length=255)


class AuthUser(BaseModel):
    id: str
    email: str
    name: str


class LoginResponse(BaseModel):
    token: str
    user: AuthUser
