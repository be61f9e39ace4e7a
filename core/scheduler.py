#/core/scheduler.py
"""
Планировщик фоновых задач:
- Отправка отложенных push-уведомлений
- Очистка старых уведомлений
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.config import settings
from services.notification_service import NotificationService
from services.push_relay import PushRelay


class NotificationScheduler:
    """Планировщик для отправки уведомлений и выполнения фоновых задач"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None,
                 relay: Optional[PushRelay] = None):
        if session_factory is None:
            from core.database import AsyncSessionLocal
            session_factory = AsyncSessionLocal
        self.session_factory = session_factory
        self.relay = relay or PushRelay()
        self.logger = logging.getLogger(__name__)
        self.running = False

    async def start_scheduler(self) -> None:
        """Запустить планировщик (запускается параллельно с polling)"""
        self.running = True
        self.logger.info("✅ Notification Scheduler started")

        try:
            await asyncio.gather(
                self.run_push_sender(),
                self.run_cleanup_tasks(),
            )
        except asyncio.CancelledError:
            self.logger.info("Scheduler tasks cancelled")
        except Exception as e:
            self.logger.error(f"Scheduler error: {e}", exc_info=True)

    async def run_push_sender(self) -> None:
        """Фоновая задача: отправка уведомлений каждые PUSH_POLL_SECONDS секунд"""
        while self.running:
            try:
                await self.send_due_notifications()
            except Exception as e:
                self.logger.error(f"Error in push sender loop: {e}", exc_info=True)
            await asyncio.sleep(settings.PUSH_POLL_SECONDS)

    async def send_due_notifications(self) -> int:
        """
        Один проход отправки. Ошибка доставки отмечает уведомление как неудачное
        и не влияет на остальные.

        Returns:
            Количество успешно отправленных уведомлений
        """
        sent = 0
        async with self.session_factory() as session:
            notification_service = NotificationService(session)
            due = await notification_service.get_due_notifications()
            if not due:
                return 0

            self.logger.info(f"📤 Sending {len(due)} push notifications...")
            for notification in due:
                try:
                    delivered = await self.relay.send_push(
                        notification.push_token,
                        notification.title,
                        notification.body,
                        notification.data,
                    )
                except Exception as e:
                    delivered = False
                    self.logger.error(f"❌ Failed to send notification {notification.id}: {e}")

                if delivered:
                    await notification_service.mark_sent(notification.id)
                    sent += 1
                else:
                    await notification_service.mark_failed(notification.id, "relay did not accept message")

            await notification_service.commit()
        return sent

    async def run_cleanup_tasks(self) -> None:
        """Фоновая задача: очистка старых уведомлений раз в час"""
        while self.running:
            await asyncio.sleep(3600)
            try:
                async with self.session_factory() as session:
                    removed = await NotificationService(session).cleanup_old_notifications(
                        days=settings.NOTIFICATION_RETENTION_DAYS
                    )
                self.logger.info(f"🧹 Cleanup completed, removed {removed} notifications")
            except Exception as e:
                self.logger.error(f"Error in cleanup loop: {e}", exc_info=True)

    async def stop(self) -> None:
        """Остановить планировщик"""
        self.logger.info("Stopping scheduler...")
        self.running = False
        await self.relay.close()
