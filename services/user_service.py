# services/user_service.py

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select

from core.exceptions import UserNotFound
from models.user import User
from services.base import BaseService
from utils.dates import utcnow


class UserService(BaseService):
    """Участники: синхронизация с провайдером авторизации, профиль, push-токен"""

    async def get_or_create_user(self, external_id: str, email: Optional[str] = None,
                                 display_name: Optional[str] = None) -> User:
        """Получить пользователя или создать нового (без commit)"""
        user = await self.get_by_external_id(external_id)

        if not user:
            user = User(
                external_id=external_id,
                email=email,
                display_name=display_name,
                subscription_status="free",
            )
            self.db_session.add(user)
            # Только flush, commit сделает вызывающий код
            await self.flush()
            self.logger.info(f"Created user {user.id} for external id {external_id}")

        return user

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self.db_session.get(User, user_id)

    async def require(self, user_id: int) -> User:
        """Получить пользователя или бросить UserNotFound"""
        user = await self.get_by_id(user_id)
        if not user:
            raise UserNotFound(user_id)
        return user

    async def get_by_external_id(self, external_id: str) -> Optional[User]:
        result = await self.db_session.execute(
            select(User).where(User.external_id == external_id)
        )
        return result.scalar_one_or_none()

    async def get_by_couple_id(self, couple_id: int) -> List[User]:
        """Все участники пары (обратная ссылка User.couple_id)"""
        result = await self.db_session.execute(
            select(User).where(User.couple_id == couple_id).order_by(User.id)
        )
        return list(result.scalars().all())

    async def get_partner(self, couple_id: int, user_id: int) -> Optional[User]:
        """Второй участник пары, не совпадающий с user_id"""
        result = await self.db_session.execute(
            select(User).where(User.couple_id == couple_id, User.id != user_id)
        )
        return result.scalars().first()

    async def update_profile(self, user_id: int, display_name: Optional[str] = None,
                             avatar_url: Optional[str] = None) -> User:
        user = await self.require(user_id)
        user.display_name = display_name
        user.avatar_url = avatar_url
        user.updated_at = utcnow()
        await self.commit()
        return user

    async def update_push_token(self, user_id: int, push_token: Optional[str]) -> User:
        user = await self.require(user_id)
        user.push_token = push_token
        user.updated_at = utcnow()
        await self.commit()
        return user

    async def update_anniversary(self, user_id: int, anniversary_date: datetime) -> User:
        user = await self.require(user_id)
        user.anniversary_date = anniversary_date
        user.updated_at = utcnow()
        await self.commit()
        return user

    async def has_entitlement(self, user_id: int) -> bool:
        """Премиум-доступ: активная подписка или триал"""
        user = await self.get_by_id(user_id)
        return bool(user and user.is_premium())
