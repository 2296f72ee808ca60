from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

_ONE_TICK = timedelta(microseconds=1)


@dataclass(frozen=True)
class Window:
    """Closed time interval [start, end]."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return start_of_day(moment) + timedelta(days=1) - _ONE_TICK


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment).replace(day=1)


def end_of_month(moment: datetime) -> datetime:
    return start_of_month(moment) + relativedelta(months=1) - _ONE_TICK


def day_window(moment: datetime) -> Window:
    return Window(start_of_day(moment), end_of_day(moment))


def month_window(moment: datetime, months_back: int = 0) -> Window:
    """Calendar month containing `moment`, shifted back `months_back` months."""
    anchor = moment - relativedelta(months=months_back)
    return Window(start_of_month(anchor), end_of_month(anchor))


def span_window(moment: datetime, first_months_back: int, last_months_back: int) -> Window:
    """From the start of one month to the end of a later month, both relative to `moment`."""
    first = moment - relativedelta(months=first_months_back)
    last = moment - relativedelta(months=last_months_back)
    return Window(start_of_month(first), end_of_month(last))


def year_window(year: int) -> Window:
    start = datetime(year, 1, 1)
    return Window(start, datetime(year + 1, 1, 1) - _ONE_TICK)
