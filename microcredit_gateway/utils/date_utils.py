"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from dateutil.relativedelta import relativedelta


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping to the last day of shorter months (Jan 31 + 1 -> Feb 28)"""
    return from_date + relativedelta(months=months)


def age_on(birth_date: date, reference: date) -> int:
    """Full years elapsed between birth_date and reference"""
    return relativedelta(reference, birth_date).years


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)
