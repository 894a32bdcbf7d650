from __future__ import annotations

from ..core.enums import AttendanceStatus
from ..core.exceptions import InvalidStatus, ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def parse_status(value) -> AttendanceStatus:
    """Accept one of the four recordable statuses (case-insensitive)."""
    if isinstance(value, AttendanceStatus):
        candidate = value
    else:
        try:
            candidate = AttendanceStatus(str(value).strip().lower())
        except ValueError:
            raise InvalidStatus(value) from None

    if candidate not in AttendanceStatus.recordable():
        raise InvalidStatus(value)
    return candidate


def truthy_flag(value) -> bool:
    """Legacy documents store flags as True, "true" or 1."""
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip().lower() == "true"
    if isinstance(value, int) and not isinstance(value, bool):
        return value == 1
    return False


def parse_flag(value, field_name: str) -> bool:
    """Strict flag input: a JSON boolean or the strings "true"/"false"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{field_name} must be true or false")


def parse_notes(value, max_length: int) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("Notes must be text")
    return value[:max_length]
