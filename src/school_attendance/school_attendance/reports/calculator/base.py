from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable

from ...attendance.model import AttendanceRecord
from ...core.enums import AttendanceStatus



def rate_percent(part: int, whole: int) -> int:
    """Whole percentage of `part` in `whole`, halves rounded up; 0 for an empty whole."""
    if whole <= 0:
        return 0
    return math.floor(100 * part / whole + 0.5)


@dataclass(frozen=True)
class StatusCounts:
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent + self.late + self.excused

    @property
    def attending(self) -> int:
        return self.present + self.late

    @classmethod
    def from_records(cls, records: Iterable[AttendanceRecord]) -> "StatusCounts":
        counts = {status: 0 for status in AttendanceStatus.recordable()}
        for record in records:
            if record.status in counts:
                counts[record.status] += 1
        return cls(
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            excused=counts[AttendanceStatus.EXCUSED],
        )


class RateCalculator(ABC):
    """Calculator interface (Strategy Pattern for attendance rates)."""

    @abstractmethod
    def attendance_rate(self, counts: StatusCounts) -> int:
        raise NotImplementedError
