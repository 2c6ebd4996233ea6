from datetime import datetime, date, timezone
from typing import Optional, Tuple
from dateutil.relativedelta import relativedelta


class DateHelpers:
    @staticmethod
    def utcnow() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def years_ago(years: int, today: Optional[date] = None) -> date:
        """Same calendar day `years` ago; Feb 29 falls back to Feb 28"""
        today = today or date.today()
        return today - relativedelta(years=years)

    @staticmethod
    def age_on(birthdate: date, today: Optional[date] = None) -> int:
        today = today or date.today()
        years = today.year - birthdate.year
        if (today.month, today.day) < (birthdate.month, birthdate.day):
            years -= 1
        return years

    @staticmethod
    def birthdate_range(
        min_age: int, max_age: Optional[int], today: Optional[date] = None
    ) -> Tuple[Optional[date], date]:
        """Birthdates (exclusive lower, inclusive upper) for ages min..max.

        A resident is aged min_age..max_age when
        lower < birthdate <= upper; lower is None for an open top bracket.
        """
        today = today or date.today()
        upper = DateHelpers.years_ago(min_age, today)
        lower = DateHelpers.years_ago(max_age + 1, today) if max_age is not None else None
        return lower, upper

    @staticmethod
    def as_aware(value: Optional[datetime]) -> Optional[datetime]:
        """SQLite returns naive datetimes; treat them as UTC"""
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=timezone.utc)
