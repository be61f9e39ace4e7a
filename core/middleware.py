from typing import Callable, Awaitable, Any
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from core.database import get_db_session
from services.user_service import UserService


class DatabaseSessionMiddleware(BaseMiddleware):
    """
    Middleware для внедрения AsyncSession и текущего участника в хендлеры.
    Участник (User) создаётся при первом обращении; внешний ID — Telegram ID.
    """
    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any]
    ) -> Any:
        async for session in get_db_session():
            data["db_session"] = session

            tg_user = data.get("event_from_user")
            if tg_user is not None:
                member = await UserService(session).get_or_create_user(
                    str(tg_user.id),
                    display_name=tg_user.full_name,
                )
                await session.commit()
                data["member"] = member

            return await handler(event, data)
