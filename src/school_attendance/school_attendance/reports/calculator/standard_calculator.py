from __future__ import annotations

from .base import RateCalculator, StatusCounts, rate_percent


class StandardRateCalculator(RateCalculator):
    """Late students count as attending; excused ones do not.

    Rate is a whole percentage of the records taken, 0 when nothing was taken.
    """

    def attendance_rate(self, counts: StatusCounts) -> int:
        return rate_percent(counts.attending, counts.total)
