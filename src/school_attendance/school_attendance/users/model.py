from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: Pure data object (no database access code).
    """

    id: str
    email: str
    name: str
    role: Role
    password_hash: str = ""
    is_active: bool = True
    section_ids: tuple[str, ...] = ()
    subjects: tuple[str, ...] = ()

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], doc_id: Optional[str] = None) -> "User":
        try:
            role = Role(str(doc.get("role") or Role.SUBJECT.value).lower())
        except ValueError:
            role = Role.SUBJECT
        sections = doc.get("sectionIds") or doc.get("sections") or []
        return cls(
            id=str(doc_id or doc.get("id") or ""),
            email=str(doc.get("email") or ""),
            name=str(doc.get("name") or doc.get("email") or ""),
            role=role,
            password_hash=str(doc.get("passwordHash") or ""),
            is_active=bool(doc.get("isActive", True)),
            section_ids=tuple(str(s) for s in sections if s),
            subjects=tuple(str(s) for s in (doc.get("subjects") or []) if s),
        )

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "isActive": self.is_active,
            "sectionIds": list(self.section_ids),
            "subjects": list(self.subjects),
        }


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: str
    name: str
    email: str
    role: Role
