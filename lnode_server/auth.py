from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import Argon2Error, InvalidHashError
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lnode_server.config import ServerConfig
from lnode_server.errors import InternalError, UnauthorizedError
from lnode_server.schemas import Principal


class AuthManager:
    """Password hashing and access-token minting/verification."""

    def __init__(self, config: ServerConfig) -> None:
        self.config = config
        self.hasher = PasswordHasher()

    def hash_password(self, password: str) -> str:
        return self.hasher.hash(password)

    def verify_password(self, password: str, hashed: str) -> bool:
        try:
            return bool(self.hasher.verify(hashed, password))
        except (Argon2Error, InvalidHashError):
            return False

    def _encode(self, payload: dict[str, Any], ttl_seconds: int) -> str:
        now = datetime.now(UTC)
        claims = {
            **payload,
            "iss": self.config.jwt_issuer,
            "aud": self.config.jwt_audience,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        }
        try:
            return jwt.encode(claims, self.config.jwt_secret, algorithm="HS256")
        except jwt.PyJWTError as exc:
            raise InternalError("failed to generate token") from exc

    def create_access_token(self, user_id: uuid.UUID, email: str) -> str:
        payload = {
            "sub": str(user_id),
            "email": email,
            "type": "access",
        }
        return self._encode(payload, self.config.access_token_ttl_seconds)

    def decode_access(self, token: str) -> Principal:
        try:
            payload = jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=["HS256"],
                issuer=self.config.jwt_issuer,
                audience=self.config.jwt_audience,
            )
        except jwt.PyJWTError as exc:
            raise UnauthorizedError("invalid access token") from exc

        if payload.get("type") != "access":
            raise UnauthorizedError("invalid token type")

        try:
            user_id = uuid.UUID(str(payload.get("sub")))
        except ValueError as exc:
            raise UnauthorizedError("invalid subject claim") from exc

        email = payload.get("email")
        if not isinstance(email, str) or not email:
            raise UnauthorizedError("invalid email claim")

        return Principal(user_id=user_id, email=email)


bearer_scheme = HTTPBearer(auto_error=False)


def principal_from_request(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    auth: AuthManager = request.app.state.auth
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise UnauthorizedError("missing auth token")
    return auth.decode_access(credentials.credentials)
