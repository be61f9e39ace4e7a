# /services/notification_service.py
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, delete, and_

from models.notification import PushNotification
from models.user import User
from services.base import BaseService
from utils.dates import utcnow


class NotificationService(BaseService):
    """
    Очередь отложенных push-уведомлений.
    Запись в очередь происходит в той же единице работы, что и мутация;
    отправку делает планировщик (core/scheduler.py).
    """

    async def schedule_push(self, user: Optional[User], notification_type: str, title: str,
                            body: str, data: Optional[Dict[str, Any]] = None,
                            delay_minutes: int = 0) -> Optional[PushNotification]:
        """Запланировать уведомление (без commit). Без push-токена молча пропускается"""
        if user is None or not user.push_token:
            self.logger.debug(f"No push token for user {getattr(user, 'id', None)}, skipping {notification_type}")
            return None

        notification = PushNotification(
            user_id=user.id,
            push_token=user.push_token,
            notification_type=notification_type,
            title=title,
            body=body,
            data=data or {},
            scheduled_time=utcnow() + timedelta(minutes=delay_minutes),
        )
        self.db_session.add(notification)
        await self.flush()
        return notification

    async def notify_match(self, partner: Optional[User], proposal_title: Optional[str]) -> Optional[PushNotification]:
        """Сообщить партнёру о новом мэтче"""
        if proposal_title:
            body = f"«{proposal_title}» — вы оба хотите сюда! 💞"
        else:
            body = "У вас новый мэтч!"
        return await self.schedule_push(
            partner, "match_created", "Это мэтч! 🎉", body, data={"url": "/matches"}
        )

    async def notify_plan_confirmed(self, partner: Optional[User], plan_title: str,
                                    final_date: Optional[str] = None) -> Optional[PushNotification]:
        """Сообщить партнёру, что план свидания подтверждён"""
        body = f"«{plan_title}»: дата определена!"
        if final_date:
            body += f" {final_date}"
        return await self.schedule_push(
            partner, "plan_confirmed", "План свидания подтверждён! 📅", body, data={"url": "/matches"}
        )

    async def get_due_notifications(self, limit: int = 100) -> List[PushNotification]:
        """Получить уведомления, готовые к отправке"""
        result = await self.db_session.execute(
            select(PushNotification).where(
                and_(
                    PushNotification.sent == False,  # noqa: E712
                    PushNotification.failed == False,  # noqa: E712
                    PushNotification.scheduled_time <= utcnow(),
                )
            ).order_by(PushNotification.scheduled_time).limit(limit)
        )
        return list(result.scalars().all())

    async def mark_sent(self, notification_id: int) -> bool:
        result = await self.db_session.execute(
            update(PushNotification)
            .where(PushNotification.id == notification_id)
            .values(sent=True, sent_at=utcnow())
        )
        return result.rowcount > 0

    async def mark_failed(self, notification_id: int, error: str) -> bool:
        # Повторных попыток нет: доставка best-effort
        result = await self.db_session.execute(
            update(PushNotification)
            .where(PushNotification.id == notification_id)
            .values(failed=True, error=error[:1000])
        )
        return result.rowcount > 0

    async def cleanup_old_notifications(self, days: int = 7) -> int:
        """Удалить отправленные и неудачные уведомления старше days дней"""
        old_date = utcnow() - timedelta(days=days)
        result = await self.db_session.execute(
            delete(PushNotification).where(
                and_(
                    (PushNotification.sent == True) | (PushNotification.failed == True),  # noqa: E712
                    PushNotification.created_at <= old_date,
                )
            )
        )
        await self.commit()
        return result.rowcount
