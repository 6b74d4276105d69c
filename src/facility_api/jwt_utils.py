from __future__ import annotations

import base64
import hashlib
import hmac
import json
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(raw: str) -> bytes:
    padding = "=" * ((4 - len(raw) % 4) % 4)
    return base64.urlsafe_b64decode((raw + padding).encode("ascii"))


@dataclass(frozen=True)
class TokenPayload:
    sub: str
    email: str
    name: str
    iat: int
    exp: int


class JWTManager:
    """HS256 bearer tokens carrying the caller's id, email and display name."""

    def __init__(self, secret: str, expires_in_seconds: int = 3600) -> None:
        if not secret:
            raise ValueError("JWT secret cannot be empty")
        self._secret = secret.encode("utf-8")
        self.expires_in_seconds = expires_in_seconds

    def issue(self, subject: str, email: str, name: str, now: datetime | None = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = TokenPayload(
            sub=subject,
            email=email,
            name=name,
            iat=int(issued.timestamp()),
            exp=int((issued + timedelta(seconds=self.expires_in_seconds)).timestamp()),
        )
        return self._encode(asdict(payload))

    def decode(self, token: str) -> TokenPayload:
        try:
            header_raw, payload_raw, sig_raw = token.split(".")
        except ValueError as exc:
            raise ValueError("malformed token") from exc
        if not token.isascii():
            raise ValueError("malformed token")
        expected = self._sign(header_raw, payload_raw).encode("ascii")
        if not hmac.compare_digest(expected, sig_raw.encode("ascii")):
            raise ValueError("invalid token signature")
        try:
            header = json.loads(_b64decode(header_raw))
            payload = json.loads(_b64decode(payload_raw))
        except (ValueError, UnicodeDecodeError) as exc:
            raise ValueError("malformed token") from exc
        if header.get("alg") != "HS256":
            raise ValueError("unsupported token algorithm")
        exp = int(payload.get("exp", 0))
        if exp <= int(datetime.now(timezone.utc).timestamp()):
            raise ValueError("token expired")
        return TokenPayload(
            sub=str(payload.get("sub", "")),
            email=str(payload.get("email", "")),
            name=str(payload.get("name", "")),
            iat=int(payload.get("iat", 0)),
            exp=exp,
        )

    def _encode(self, payload: dict[str, Any]) -> str:
        header = {"alg": "HS256", "typ": "JWT"}
        header_raw = _b64encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
        payload_raw = _b64encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
        return f"{header_raw}.{payload_raw}.{self._sign(header_raw, payload_raw)}"

    def _sign(self, header_raw: str, payload_raw: str) -> str:
        signed = f"{header_raw}.{payload_raw}".encode("ascii")
        return _b64encode(hmac.new(self._secret, signed, hashlib.sha256).digest())
