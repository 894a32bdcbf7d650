from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Optional

from ..core.constants import HOMEROOM_CODE, HOMEROOM_SUBJECT
from ..core.enums import WeekParity


@dataclass(frozen=True)
class ScheduleSlot:
    day: Optional[str]
    period: Optional[int] = None
    time: Optional[str] = None

    def falls_on(self, day_name: str) -> bool:
        return bool(self.day) and self.day.strip().lower() == day_name.strip().lower()

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ScheduleSlot":
        period = doc.get("period")
        return cls(
            day=doc.get("day"),
            period=int(period) if isinstance(period, (int, str)) and str(period).isdigit() else None,
            time=doc.get("time"),
        )


@dataclass(frozen=True)
class Subject:
    """Domain entity: Subject with a two-week alternating timetable."""

    id: str
    name: str
    code: Optional[str] = None
    room: Optional[str] = None
    color: Optional[str] = None
    is_active: bool = True
    schedule: Mapping[WeekParity, tuple[ScheduleSlot, ...]] = field(default_factory=dict)

    @property
    def is_homeroom(self) -> bool:
        return self.name == HOMEROOM_SUBJECT or self.code == HOMEROOM_CODE

    def slots(self, parity: WeekParity) -> tuple[ScheduleSlot, ...]:
        return tuple(self.schedule.get(parity, ()))

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], doc_id: Optional[str] = None) -> "Subject":
        raw_schedule = doc.get("schedule") or {}
        schedule: dict[WeekParity, tuple[ScheduleSlot, ...]] = {}
        for parity in WeekParity:
            entries = raw_schedule.get(parity.value) if isinstance(raw_schedule, Mapping) else None
            if isinstance(entries, list):
                schedule[parity] = tuple(ScheduleSlot.from_document(e) for e in entries if isinstance(e, Mapping))

        return cls(
            id=str(doc_id or doc.get("id") or ""),
            name=str(doc.get("name") or ""),
            code=doc.get("code"),
            room=doc.get("room"),
            color=doc.get("color"),
            is_active=bool(doc.get("isActive", True)),
            schedule=schedule,
        )


@dataclass(frozen=True)
class SchoolCalendar:
    """Week-parity anchor: the first Monday of the school year.

    Every date's week1/week2 parity is counted from this date, so it must be
    set from configuration for each academic year.
    """

    school_start_date: date

    def week_index(self, day: date) -> int:
        return (day - self.school_start_date).days // 7

    def week_parity(self, day: date) -> WeekParity:
        return WeekParity.WEEK1 if self.week_index(day) % 2 == 0 else WeekParity.WEEK2
