# /services/usage_service.py
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select

from core.config import settings
from core.exceptions import ValidationError
from models.daily_usage import DailyUsage
from services.base import BaseService
from utils.dates import today_str
from utils.validation import USAGE_TYPES

COUNTER_FIELDS = {
    "like": "like_count",
    "super_like": "super_like_count",
    "proposal": "proposal_create_count",
}


@dataclass
class UsageSnapshot:
    like_count: int = 0
    super_like_count: int = 0
    proposal_create_count: int = 0


@dataclass
class LimitCheck:
    has_remaining: bool
    remaining: Optional[int]  # None — без ограничений
    limit: Optional[int]


class UsageService(BaseService):
    """Дневные счётчики лайков, суперлайков и созданных предложений"""

    async def _get(self, user_id: int, date: str) -> Optional[DailyUsage]:
        result = await self.db_session.execute(
            select(DailyUsage).where(DailyUsage.user_id == user_id, DailyUsage.date == date)
        )
        return result.scalar_one_or_none()

    async def get_today(self, user_id: int, date: Optional[str] = None) -> UsageSnapshot:
        usage = await self._get(user_id, date or today_str())
        if not usage:
            return UsageSnapshot()
        return UsageSnapshot(
            like_count=usage.like_count,
            super_like_count=usage.super_like_count,
            proposal_create_count=usage.proposal_create_count,
        )

    async def increment(self, user_id: int, usage_type: str, date: Optional[str] = None) -> int:
        """Увеличить счётчик на 1 (без commit)"""
        if usage_type not in USAGE_TYPES:
            raise ValidationError(f"Invalid usage type: {usage_type}")

        date = date or today_str()
        usage = await self._get(user_id, date)
        if not usage:
            usage = DailyUsage(
                user_id=user_id,
                date=date,
                like_count=0,
                super_like_count=0,
                proposal_create_count=0,
            )
            self.db_session.add(usage)

        field_name = COUNTER_FIELDS[usage_type]
        setattr(usage, field_name, getattr(usage, field_name) + 1)
        await self.flush()
        return usage.id

    async def check_limit(self, user_id: int, usage_type: str, is_premium: bool,
                          date: Optional[str] = None) -> LimitCheck:
        """Остались ли лайки/суперлайки на сегодня. Премиум — без ограничений"""
        if usage_type not in ("like", "super_like"):
            raise ValidationError(f"Usage type '{usage_type}' has no daily limit")

        if is_premium:
            return LimitCheck(has_remaining=True, remaining=None, limit=None)

        limit = settings.DAILY_LIKE_LIMIT if usage_type == "like" else settings.DAILY_SUPER_LIKE_LIMIT
        snapshot = await self.get_today(user_id, date)
        current = snapshot.like_count if usage_type == "like" else snapshot.super_like_count

        return LimitCheck(
            has_remaining=current < limit,
            remaining=max(0, limit - current),
            limit=limit,
        )
