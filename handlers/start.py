#/handlers/start.py
"""
Основные команды бота: /start, /help, профиль, push-токен.
"""

from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import KeyboardButton, Message, ReplyKeyboardMarkup
from sqlalchemy.ext.asyncio import AsyncSession

from handlers.couple import join_by_code
from models.user import User
from services.match_service import MatchService
from services.usage_service import UsageService
from services.user_service import UserService

router = Router()
logger = logging.getLogger(__name__)


def get_start_keyboard() -> ReplyKeyboardMarkup:
    """Основное меню бота"""
    keyboard = ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text="💘 Свайпать")],
            [KeyboardButton(text="💞 Мэтчи"), KeyboardButton(text="👤 Профиль")],
            [KeyboardButton(text="ℹ️ Помощь")],
        ],
        resize_keyboard=True,
        input_field_placeholder="Выберите действие...",
    )
    return keyboard


@router.message(CommandStart())
async def cmd_start(message: Message, command: CommandObject, db_session: AsyncSession, member: User) -> None:
    """
    Команда /start — приветствие. Ссылка-приглашение /start join_КОД сразу присоединяет к паре.

    Args:
        message: Telegram сообщение
        command: аргументы команды (deep link)
        db_session: Сессия БД (из middleware)
        member: текущий участник (из middleware)
    """
    if command.args and command.args.startswith("join_"):
        await join_by_code(message, db_session, member, command.args[len("join_"):])
        return

    welcome_text = (
        "💘 <b>Добро пожаловать!</b>\n\n"
        "Свайпайте идеи для свиданий вместе с партнёром — "
        "когда вы оба хотите одного и того же, случается мэтч.\n\n"
        "• 🤝 <b>/couple</b> — пара и код приглашения\n"
        "• 💘 <b>/swipe</b> — колода предложений\n"
        "• 💡 <b>/propose</b> — своё предложение\n"
        "• 💞 <b>/matches</b> — мэтчи\n"
        "• 📅 <b>/plans</b> — запланированные свидания\n"
        "• ℹ️ <b>/help</b> — справка"
    )
    await message.answer(welcome_text, parse_mode="HTML", reply_markup=get_start_keyboard())


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    """Команда /help — справка по командам"""
    help_text = (
        "ℹ️ <b>Справка</b>\n\n"
        "/couple — меню пары\n"
        "/create_couple — создать пару\n"
        "/join КОД — присоединиться к паре\n"
        "/leave_couple — покинуть пару\n"
        "/swipe — свайпать предложения\n"
        "/propose — добавить предложение\n"
        "/matches — мэтчи\n"
        "/plans — подтверждённые свидания\n"
        "/profile — профиль и статистика\n"
        "/push_token ТОКЕН — подключить push-уведомления\n\n"
        "<b>Лимиты:</b> 10 лайков и 1 суперлайк в день (без подписки)."
    )
    await message.answer(help_text, parse_mode="HTML")


@router.message(Command("profile"))
async def cmd_profile(message: Message, db_session: AsyncSession, member: User) -> None:
    """
    Команда /profile — профиль и кольца статистики пары.
    """
    usage = await UsageService(db_session).get_today(member.id)
    lines = [
        "👤 <b>Ваш профиль</b>\n",
        f"<b>Имя:</b> {member.display_name or '—'}",
        f"<b>Подписка:</b> {'премиум' if member.is_premium() else 'бесплатная'}",
        f"<b>❤️ Лайков сегодня:</b> {usage.like_count}",
        f"<b>⭐ Суперлайков сегодня:</b> {usage.super_like_count}",
    ]

    if member.couple_id:
        stats = await MatchService(db_session).get_stats_for_couple(member.couple_id, member.id)
        lines += [
            "",
            f"<b>💡 Мои предложения:</b> {stats.sent}/{stats.sent_total}",
            f"<b>💌 От партнёра:</b> {stats.received}/{stats.received_total}",
            f"<b>🎉 Свиданий:</b> {stats.completed_dates}/{stats.total_matches}",
        ]

    await message.answer("\n".join(lines), parse_mode="HTML")


@router.message(Command("push_token"))
async def cmd_push_token(message: Message, command: CommandObject, db_session: AsyncSession, member: User) -> None:
    """Привязать токен push-уведомлений мобильного клиента"""
    token = (command.args or "").strip() or None
    await UserService(db_session).update_push_token(member.id, token)
    await message.answer("🔔 Уведомления включены." if token else "🔕 Уведомления отключены.")


@router.message(F.text == "👤 Профиль")
async def button_profile(message: Message, db_session: AsyncSession, member: User) -> None:
    """Кнопка меню — профиль"""
    await cmd_profile(message, db_session, member)


@router.message(F.text == "ℹ️ Помощь")
async def button_help(message: Message) -> None:
    """Кнопка меню — помощь"""
    await cmd_help(message)
