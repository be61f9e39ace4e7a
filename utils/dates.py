# utils/dates.py
from datetime import date, datetime, timezone
from typing import Iterable, List


DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def utcnow() -> datetime:
    """Текущее время UTC без tzinfo (так хранится в БД)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_str() -> str:
    return utcnow().strftime(DATE_FORMAT)


def parse_date(raw: str) -> date:
    """'2024-06-01' -> date. ValueError при неверном формате"""
    if raw is None:
        raise ValueError("date is required")
    return datetime.strptime(raw.strip(), DATE_FORMAT).date()


def normalize_date(raw: str) -> str:
    return parse_date(raw).strftime(DATE_FORMAT)


def normalize_time(raw: str) -> str:
    """'9:05' -> '09:05'"""
    if raw is None:
        raise ValueError("time is required")
    return datetime.strptime(raw.strip(), TIME_FORMAT).strftime(TIME_FORMAT)


def sorted_unique_dates(values: Iterable[str]) -> List[str]:
    # YYYY-MM-DD сортируется лексикографически
    return sorted({normalize_date(v) for v in values})
