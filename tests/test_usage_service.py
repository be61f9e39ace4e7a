"""Tests for daily like / super like limits."""

import pytest

from core.exceptions import ValidationError
from services.usage_service import UsageService, UsageSnapshot


class TestCounters:
    @pytest.mark.asyncio
    async def test_empty_day(self, session, make_user):
        user = await make_user("tg-1")
        assert await UsageService(session).get_today(user.id) == UsageSnapshot()

    @pytest.mark.asyncio
    async def test_increment(self, session, make_user):
        user = await make_user("tg-1")
        service = UsageService(session)
        await service.increment(user.id, "like", date="2024-06-01")
        await service.increment(user.id, "like", date="2024-06-01")
        await service.increment(user.id, "proposal", date="2024-06-01")

        snapshot = await service.get_today(user.id, date="2024-06-01")
        assert snapshot.like_count == 2
        assert snapshot.super_like_count == 0
        assert snapshot.proposal_create_count == 1

    @pytest.mark.asyncio
    async def test_days_are_independent(self, session, make_user):
        user = await make_user("tg-1")
        service = UsageService(session)
        await service.increment(user.id, "super_like", date="2024-06-01")

        assert (await service.get_today(user.id, date="2024-06-02")).super_like_count == 0

    @pytest.mark.asyncio
    async def test_invalid_type(self, session, make_user):
        user = await make_user("tg-1")
        with pytest.raises(ValidationError):
            await UsageService(session).increment(user.id, "dislike")


class TestLimits:
    @pytest.mark.asyncio
    async def test_like_limit(self, session, make_user):
        user = await make_user("tg-1")
        service = UsageService(session)
        for _ in range(9):
            await service.increment(user.id, "like", date="2024-06-01")

        check = await service.check_limit(user.id, "like", is_premium=False, date="2024-06-01")
        assert check.has_remaining and check.remaining == 1 and check.limit == 10

        await service.increment(user.id, "like", date="2024-06-01")
        check = await service.check_limit(user.id, "like", is_premium=False, date="2024-06-01")
        assert not check.has_remaining
        assert check.remaining == 0

    @pytest.mark.asyncio
    async def test_super_like_limit(self, session, make_user):
        user = await make_user("tg-1")
        service = UsageService(session)
        await service.increment(user.id, "super_like", date="2024-06-01")

        check = await service.check_limit(user.id, "super_like", is_premium=False, date="2024-06-01")
        assert not check.has_remaining
        assert check.limit == 1

    @pytest.mark.asyncio
    async def test_premium_unlimited(self, session, make_user):
        user = await make_user("tg-1")
        service = UsageService(session)
        for _ in range(20):
            await service.increment(user.id, "like", date="2024-06-01")

        check = await service.check_limit(user.id, "like", is_premium=True, date="2024-06-01")
        assert check.has_remaining
        assert check.remaining is None and check.limit is None

    @pytest.mark.asyncio
    async def test_proposals_have_no_limit(self, session, make_user):
        user = await make_user("tg-1")
        with pytest.raises(ValidationError):
            await UsageService(session).check_limit(user.id, "proposal", is_premium=False)
