"""Tests for the notification queue and the background sender."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from core.scheduler import NotificationScheduler
from models.notification import PushNotification
from services.notification_service import NotificationService
from services.user_service import UserService
from utils.dates import utcnow


async def queue(session_factory, *tokens, delay_minutes=0):
    """Создать пользователей с токенами и поставить им по уведомлению"""
    async with session_factory() as session:
        service = NotificationService(session)
        for i, token in enumerate(tokens):
            user = await UserService(session).get_or_create_user(f"tg-{token}-{i}")
            user.push_token = token
            await service.schedule_push(user, "match_created", "Это мэтч! 🎉", f"body {i}",
                                        delay_minutes=delay_minutes)
        await session.commit()


async def all_notifications(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(PushNotification).order_by(PushNotification.id))
        return result.scalars().all()


class TestQueue:
    @pytest.mark.asyncio
    async def test_user_without_token_skipped(self, session, make_user):
        user = await make_user("tg-1")
        assert await NotificationService(session).schedule_push(user, "match_created", "t", "b") is None
        assert await NotificationService(session).schedule_push(None, "match_created", "t", "b") is None

    @pytest.mark.asyncio
    async def test_delayed_not_due(self, session_factory):
        await queue(session_factory, "ExponentPushToken[a]", delay_minutes=30)
        async with session_factory() as session:
            assert await NotificationService(session).get_due_notifications() == []

    @pytest.mark.asyncio
    async def test_cleanup_removes_only_old_processed(self, session_factory):
        await queue(session_factory, "tok-old-sent", "tok-new-sent", "tok-old-pending")
        async with session_factory() as session:
            rows = (await session.execute(select(PushNotification).order_by(PushNotification.id))).scalars().all()
            old = utcnow() - timedelta(days=10)
            rows[0].sent, rows[0].created_at = True, old
            rows[1].sent = True
            rows[2].created_at = old
            await session.commit()

            removed = await NotificationService(session).cleanup_old_notifications(days=7)

        assert removed == 1
        assert [n.push_token for n in await all_notifications(session_factory)] == ["tok-new-sent", "tok-old-pending"]


class TestScheduler:
    @pytest.mark.asyncio
    async def test_sends_due_notifications(self, session_factory):
        await queue(session_factory, "ExponentPushToken[a]", "ExponentPushToken[b]")
        relay = AsyncMock()
        relay.send_push.return_value = True

        scheduler = NotificationScheduler(session_factory=session_factory, relay=relay)
        assert await scheduler.send_due_notifications() == 2

        assert relay.send_push.await_count == 2
        relay.send_push.assert_any_await("ExponentPushToken[a]", "Это мэтч! 🎉", "body 0", {})
        notifications = await all_notifications(session_factory)
        assert all(n.sent for n in notifications)
        assert all(n.sent_at is not None for n in notifications)

    @pytest.mark.asyncio
    async def test_failure_does_not_block_others(self, session_factory):
        await queue(session_factory, "ExponentPushToken[a]", "ExponentPushToken[b]")
        relay = AsyncMock()
        relay.send_push.side_effect = [RuntimeError("relay down"), True]

        scheduler = NotificationScheduler(session_factory=session_factory, relay=relay)
        assert await scheduler.send_due_notifications() == 1

        first, second = await all_notifications(session_factory)
        assert first.failed and not first.sent
        assert second.sent and not second.failed

    @pytest.mark.asyncio
    async def test_failed_are_not_retried(self, session_factory):
        await queue(session_factory, "ExponentPushToken[a]")
        relay = AsyncMock()
        relay.send_push.return_value = False

        scheduler = NotificationScheduler(session_factory=session_factory, relay=relay)
        assert await scheduler.send_due_notifications() == 0
        assert await scheduler.send_due_notifications() == 0
        assert relay.send_push.await_count == 1

    @pytest.mark.asyncio
    async def test_stop_closes_relay(self, session_factory):
        relay = AsyncMock()
        scheduler = NotificationScheduler(session_factory=session_factory, relay=relay)
        scheduler.running = True

        await scheduler.stop()
        assert not scheduler.running
        relay.close.assert_awaited_once()
