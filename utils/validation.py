# utils/validation.py
from typing import Optional

from core.exceptions import ValidationError

SWIPE_DIRECTIONS = {"left", "right", "super_like"}
POSITIVE_DIRECTIONS = {"right", "super_like"}

MATCH_STATUSES = ("matched", "scheduled", "completed")
PLAN_STATUSES = ("draft", "proposed", "confirmed")
USAGE_TYPES = {"like", "super_like", "proposal"}


def normalize_direction(raw: str) -> str:
    if raw is None:
        raise ValidationError("direction is required")
    v = raw.strip().lower()
    if v not in SWIPE_DIRECTIONS:
        raise ValidationError(f"Invalid direction: {raw}. Allowed: left, right, super_like")
    return v


def normalize_match_status(raw: str) -> str:
    v = (raw or "").strip().lower()
    if v not in MATCH_STATUSES:
        raise ValidationError(f"Invalid match status: {raw}. Allowed: {', '.join(MATCH_STATUSES)}")
    return v


def normalize_plan_status(raw: str) -> str:
    v = (raw or "").strip().lower()
    if v not in PLAN_STATUSES:
        raise ValidationError(f"Invalid plan status: {raw}. Allowed: {', '.join(PLAN_STATUSES)}")
    return v


def parse_optional(raw: str) -> Optional[str]:
    # "-" или пусто означает "не указано"
    if not raw:
        return None
    s = raw.strip()
    if s in {"-", "—", ""}:
        return None
    return s
