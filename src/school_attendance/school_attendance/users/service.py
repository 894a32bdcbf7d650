from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import COLLECTION_PASSWORD_RESETS, COLLECTION_USERS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..store.repository import DocumentStore
from .model import SessionUser, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def require_role(user: Optional[SessionUser], roles: Iterable[Role]) -> SessionUser:
    allowed = set(roles)
    if user is None:
        raise AuthenticationError("Please sign in to continue")
    if user.role not in allowed and user.role != Role.ADMIN:
        raise AuthorizationError("You do not have permission for this action")
    return user


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def authenticate(self, email: str, password: str) -> SessionUser:
        docs = self._store.query(COLLECTION_USERS, email=(email or "").strip().lower())
        user = User.from_document(docs[0]) if docs else None
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.id, name=user.name, email=user.email, role=user.role)


class UserService:
    """Use case: manage users (admin) and password resets."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def list_users(self) -> list[User]:
        return [User.from_document(d) for d in self._store.list_documents(COLLECTION_USERS)]

    def get_user(self, user_id: str) -> Optional[User]:
        doc = self._store.get(COLLECTION_USERS, user_id)
        return User.from_document(doc) if doc else None

    def create_account(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: Role,
        section_ids: Sequence[str] = (),
        subjects: Sequence[str] = (),
    ) -> str:
        name = require_non_empty(name, "Name")
        email = require_non_empty(email, "Email").lower()
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        if "@" not in email:
            raise ValidationError("Email is not valid")

        profile = {
            "name": name,
            "role": Role(role).value,
            "isActive": True,
            "sectionIds": [s for s in section_ids if s],
            "subjects": [s for s in subjects if s],
        }
        user_id = self._store.create_user(email=email, password_hash=generate_password_hash(password), profile=profile)
        logger.info("Created %s account %s", profile["role"], email)
        return user_id

    def request_password_reset(self, email: str) -> Optional[str]:
        email = require_non_empty(email, "Email").lower()
        if not self._store.query(COLLECTION_USERS, email=email):
            logger.info("Password reset requested for unknown email %s", email)
            return None
        return self._store.send_password_reset(email=email)

    def reset_password(self, token: str, new_password: str, *, now: Optional[datetime] = None) -> None:
        token = require_non_empty(token, "Token")
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)

        resets = self._store.query(COLLECTION_PASSWORD_RESETS, token=token)
        if not resets:
            raise ValidationError("Reset link is invalid")
        reset = resets[0]
        if datetime.fromisoformat(str(reset["expiresAt"])) < (now or now_local()):
            self._store.delete(COLLECTION_PASSWORD_RESETS, reset["id"])
            raise ValidationError("Reset link has expired")

        users = self._store.query(COLLECTION_USERS, email=reset["email"])
        if not users:
            raise ValidationError("Reset link is invalid")

        self._store.update(COLLECTION_USERS, users[0]["id"], {"passwordHash": generate_password_hash(new_password)})
        self._store.delete(COLLECTION_PASSWORD_RESETS, reset["id"])
        logger.info("Password reset completed for %s", reset["email"])
