# /services/couple_service.py
import random
import string
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import select

from core.config import settings
from core.exceptions import CoupleFull, CoupleNotFound, InviteCodeExhausted, NotInCouple
from models.couple import Couple
from models.user import User
from services.base import BaseService
from services.user_service import UserService
from utils.dates import utcnow

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(length: int = 6) -> str:
    """Случайный код приглашения из [A-Z0-9]"""
    return "".join(random.choices(INVITE_CODE_ALPHABET, k=length))


@dataclass
class CoupleWithPartner:
    couple: Couple
    partner: Optional[User]


class CoupleService(BaseService):
    """Реестр пар: создание по коду приглашения, присоединение, выход"""

    def __init__(self, db_session):
        super().__init__(db_session)
        self.users = UserService(db_session)

    async def create(self, user_id: int) -> Tuple[int, str]:
        """Создать пару в статусе pending и привязать к ней пользователя"""
        user = await self.users.require(user_id)
        invite_code = await self._unique_invite_code()

        couple = Couple(invite_code=invite_code, status="pending", created_at=utcnow())
        self.db_session.add(couple)
        await self.flush()

        user.couple_id = couple.id
        user.updated_at = utcnow()
        await self.commit()

        self.logger.info(f"Couple {couple.id} created by user {user_id} (code {invite_code})")
        return couple.id, invite_code

    async def _unique_invite_code(self) -> str:
        """
        Подобрать свободный код. Ограниченное число попыток на базовой длине,
        затем столько же на увеличенной.
        """
        attempts = 0
        for length in (settings.INVITE_CODE_LENGTH, settings.INVITE_CODE_FALLBACK_LENGTH):
            for _ in range(settings.INVITE_CODE_MAX_ATTEMPTS):
                attempts += 1
                code = generate_invite_code(length)
                if await self.get_by_invite_code(code) is None:
                    return code
            self.logger.warning(f"Invite code space of length {length} looks crowded, growing code")
        raise InviteCodeExhausted(attempts)

    async def join(self, user_id: int, invite_code: str) -> int:
        """
        Присоединиться к паре по коду. Пара становится active только
        со вторым участником: создатель, введший свой же код, оставляет её pending.
        Участник другой пары сначала покидает её.
        """
        code = (invite_code or "").strip().upper()
        couple = await self.get_by_invite_code(code)
        if not couple:
            raise CoupleNotFound(invite_code=code)

        user = await self.users.require(user_id)
        members = await self.users.get_by_couple_id(couple.id)
        others = [m for m in members if m.id != user.id]
        if len(others) >= settings.MAX_COUPLE_MEMBERS:
            raise CoupleFull(couple.id)

        if user.couple_id and user.couple_id != couple.id:
            self.logger.info(f"User {user_id} switches from couple {user.couple_id} to {couple.id}")
            await self._detach(user)

        now = utcnow()
        user.couple_id = couple.id
        user.anniversary_date = now
        user.updated_at = now

        if others:
            couple.status = "active"
            couple.activated_at = now

        # Дату годовщины партнёра не перезаписываем
        for other in others:
            if other.anniversary_date is None:
                other.anniversary_date = now
                other.updated_at = now

        await self.commit()
        self.logger.info(f"User {user_id} joined couple {couple.id}")
        return couple.id

    async def get_by_invite_code(self, invite_code: str) -> Optional[Couple]:
        result = await self.db_session.execute(
            select(Couple).where(Couple.invite_code == invite_code.strip().upper())
        )
        return result.scalars().first()

    async def get_by_id(self, couple_id: int) -> Optional[Couple]:
        return await self.db_session.get(Couple, couple_id)

    async def get_with_partner(self, user_id: int) -> Optional[CoupleWithPartner]:
        """Пара пользователя вместе с партнёром (partner=None, пока никто не присоединился)"""
        user = await self.users.get_by_id(user_id)
        if not user or not user.couple_id:
            return None

        couple = await self.get_by_id(user.couple_id)
        if not couple:
            return None

        partner = await self.users.get_partner(couple.id, user.id)
        return CoupleWithPartner(couple=couple, partner=partner)

    async def leave_couple(self, user_id: int) -> dict:
        """Покинуть пару. Последний участник удаляет пару, иначе она возвращается в pending"""
        user = await self.users.get_by_id(user_id)
        if not user or not user.couple_id:
            raise NotInCouple(user_id)

        await self._detach(user)
        await self.commit()
        return {"success": True}

    async def _detach(self, user: User) -> None:
        """Отвязать пользователя от пары (без commit)"""
        couple_id = user.couple_id
        user.couple_id = None
        user.updated_at = utcnow()
        await self.flush()

        remaining = await self.users.get_by_couple_id(couple_id)
        couple = await self.get_by_id(couple_id)
        if couple is None:
            return
        if not remaining:
            await self.db_session.delete(couple)
            await self.flush()
            self.logger.info(f"Couple {couple_id} deleted, no members left")
        else:
            couple.status = "pending"
