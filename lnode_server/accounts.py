from __future__ import annotations

import logging
import uuid

from lnode_server.auth import AuthManager
from lnode_server.errors import ConflictError, UnauthorizedError
from lnode_server.interfaces import UserStore
from lnode_server.pagination import PageRequest
from lnode_server.schemas import UpdateUserRequest, UserRecord

logger = logging.getLogger("lnode_server.accounts")


class AccountService:
    """Login and user-directory operations that need no platform calls."""

    def __init__(self, users: UserStore, auth: AuthManager) -> None:
        self.users = users
        self.auth = auth

    def login(self, email: str, password: str) -> tuple[str, UserRecord]:
        credentials = self.users.get_user_credentials_by_email(email)
        if credentials is None or not self.auth.verify_password(password, credentials.password_hash):
            logger.info("login rejected")
            raise UnauthorizedError("invalid credentials")

        user = UserRecord.model_validate(credentials.model_dump(exclude={"password_hash"}))
        return self.auth.create_access_token(user.id, user.email), user

    def get_user(self, user_id: uuid.UUID) -> UserRecord:
        return self.users.get_user(user_id)

    def list_users(self, page: PageRequest) -> tuple[list[UserRecord], int]:
        return self.users.list_users(page)

    def search_users(self, query: str, page: PageRequest) -> tuple[list[UserRecord], int]:
        query = query.strip()
        if not query:
            return self.users.list_users(page)
        return self.users.search_users(query, page)

    def update_user(self, user_id: uuid.UUID, request: UpdateUserRequest) -> UserRecord:
        current = self.users.get_user(user_id)

        changes: dict[str, str] = {}
        if request.email is not None and request.email != current.email:
            if self.users.get_user_by_email(request.email) is not None:
                raise ConflictError("email already exists")
            changes["email"] = request.email
        if request.full_name is not None and request.full_name.strip() and request.full_name.strip() != current.full_name:
            changes["full_name"] = request.full_name.strip()
        if request.password:
            changes["password_hash"] = self.auth.hash_password(request.password)

        if not changes:
            return current
        return self.users.update_user(user_id, changes)

    def delete_user(self, user_id: uuid.UUID) -> None:
        # Devices owned by the user are left in place.
        self.users.delete_user(user_id)
        logger.info("user deleted", extra={"user_id": str(user_id)})
