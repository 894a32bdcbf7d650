from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import SCHOOL_DAYS, weekday_name
from ..core.enums import WeekParity
from ..students.model import Student
from .model import ScheduleSlot, SchoolCalendar, Subject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleInfo:
    week: WeekParity
    day: str
    display_text: str


class ScheduleService:
    """Decides which subjects are in session on a calendar date."""

    def __init__(self, calendar: SchoolCalendar):
        self._calendar = calendar

    @property
    def calendar(self) -> SchoolCalendar:
        return self._calendar

    def week_parity(self, day: date) -> WeekParity:
        return self._calendar.week_parity(day)

    @staticmethod
    def is_scheduled(subject: Subject, parity: WeekParity, day_name: str) -> bool:
        if subject.is_homeroom:
            return True
        return any(slot.falls_on(day_name) for slot in subject.slots(parity))

    def slots_on(self, subject: Subject, day: date) -> list[ScheduleSlot]:
        parity = self.week_parity(day)
        name = weekday_name(day)
        return [slot for slot in subject.slots(parity) if slot.falls_on(name)]

    def scheduled_subjects(self, all_subjects: Sequence[Subject], day: date) -> list[Subject]:
        """Subjects in session on `day`, Homeroom first.

        With no scheduled subject the result is just Homeroom (or empty when
        there is no Homeroom subject at all).
        """

        parity = self.week_parity(day)
        name = weekday_name(day)

        homeroom = next((s for s in all_subjects if s.is_homeroom), None)
        result: list[Subject] = [homeroom] if homeroom else []

        for subject in all_subjects:
            if subject.is_homeroom:
                continue
            if self.is_scheduled(subject, parity, name):
                result.append(subject)

        logger.debug("Scheduled on %s (%s %s): %s", day, parity.value, name, [s.name for s in result])
        return result

    def subjects_for_week(
        self, all_subjects: Sequence[Subject], parity: Optional[WeekParity] = None, *, today: Optional[date] = None
    ) -> dict:
        target = parity or self.week_parity(today or date.today())
        schedule = {
            day: [s for s in all_subjects if self.is_scheduled(s, target, day)]
            for day in SCHOOL_DAYS
        }
        names = {s.name for subjects in schedule.values() for s in subjects}
        return {"week": target, "schedule": schedule, "total_subjects": len(names)}

    def schedule_info(self, day: date) -> ScheduleInfo:
        parity = self.week_parity(day)
        name = weekday_name(day)
        return ScheduleInfo(
            week=parity,
            day=name,
            display_text=f"{parity.value.capitalize()}, {name.capitalize()}",
        )

    @staticmethod
    def week_display_text(parity: WeekParity) -> str:
        return "Week 1" if parity == WeekParity.WEEK1 else "Week 2"

    @staticmethod
    def format_schedule_display(slots: Iterable[ScheduleSlot]) -> str:
        return ", ".join(slot.time for slot in slots if slot.time)

    @staticmethod
    def subjects_for_grade(
        all_subjects: Sequence[Subject],
        students: Sequence[Student],
        subject_names_by_id: Mapping[str, str] | None = None,
    ) -> list[Subject]:
        """Homeroom plus every subject at least one student is enrolled in."""

        result = [s for s in all_subjects if s.is_homeroom]
        for subject in all_subjects:
            if subject.is_homeroom:
                continue
            if any(st.is_enrolled_in(subject.name, subject_names_by_id) for st in students):
                result.append(subject)
        return result
