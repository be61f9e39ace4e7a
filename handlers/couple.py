# /handlers/couple.py
"""Создание пары по коду приглашения, присоединение и выход"""

import logging

from aiogram import Router, F
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import Message, CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import CoupleFull, CoupleNotFound, NotInCouple, PairDateException
from keyboards.couple_kb import get_couple_menu_keyboard, get_leave_confirm_keyboard
from models.user import User
from services.couple_service import CoupleService

router = Router()
logger = logging.getLogger(__name__)


class CoupleStates(StatesGroup):
    waiting_for_invite_code = State()


@router.message(Command("couple"))
async def cmd_couple(message: Message, db_session: AsyncSession, member: User):
    """Меню пары"""
    info = await CoupleService(db_session).get_with_partner(member.id)

    if info is None:
        await message.answer(
            "🤝 <b>Вы пока не в паре</b>\n\n"
            "• /create_couple — создать пару и получить код\n"
            "• /join КОД — присоединиться по коду партнёра",
            parse_mode="HTML",
            reply_markup=get_couple_menu_keyboard(in_couple=False),
        )
        return

    couple, partner = info.couple, info.partner
    if partner is None:
        text = (
            "⏳ <b>Ждём партнёра</b>\n\n"
            f"Код приглашения: <code>{couple.invite_code}</code>\n"
            "Отправьте его партнёру: /join КОД"
        )
    else:
        since = member.anniversary_date.strftime("%d.%m.%Y") if member.anniversary_date else "—"
        text = (
            f"💑 <b>Вы в паре с {partner.display_name or 'партнёром'}</b>\n\n"
            f"📅 Вместе с: {since}"
        )
    await message.answer(text, parse_mode="HTML", reply_markup=get_couple_menu_keyboard(in_couple=True))


@router.message(Command("create_couple"))
async def cmd_create_couple(message: Message, db_session: AsyncSession, member: User):
    """Создать пару и выдать код приглашения"""
    if member.couple_id:
        await message.answer("❌ Вы уже состоите в паре. Сначала выйдите: /leave_couple")
        return

    try:
        _, invite_code = await CoupleService(db_session).create(member.id)
    except PairDateException as e:
        logger.error(f"Error creating couple for user {member.id}: {e}")
        await message.answer("❌ Не удалось создать пару. Попробуйте позже.")
        return

    await message.answer(
        "✅ <b>Пара создана!</b>\n\n"
        f"Код приглашения: <code>{invite_code}</code>\n"
        "Партнёр должен отправить боту: /join " + invite_code,
        parse_mode="HTML",
    )


@router.message(Command("join"))
async def cmd_join(message: Message, command: CommandObject, db_session: AsyncSession,
                   member: User, state: FSMContext):
    """Присоединиться к паре: /join КОД"""
    if not command.args:
        await message.answer("Введите код приглашения от партнёра:")
        await state.set_state(CoupleStates.waiting_for_invite_code)
        return

    await join_by_code(message, db_session, member, command.args)


@router.message(CoupleStates.waiting_for_invite_code)
async def process_invite_code(message: Message, db_session: AsyncSession, member: User, state: FSMContext):
    await state.clear()
    await join_by_code(message, db_session, member, message.text or "")


async def join_by_code(message: Message, db_session: AsyncSession, member: User, invite_code: str):
    """Присоединение по коду: /join, ввод кода и ссылка-приглашение /start join_КОД"""
    service = CoupleService(db_session)
    couple = await service.get_by_invite_code(invite_code)
    if couple is not None and member.couple_id == couple.id:
        await message.answer("ℹ️ Вы уже в этой паре. /couple")
        return
    if couple is not None and member.couple_id:
        await message.answer("❌ Вы уже состоите в паре. Сначала выйдите: /leave_couple")
        return

    try:
        await service.join(member.id, invite_code)
    except CoupleNotFound:
        await message.answer("❌ Неверный код приглашения.")
        return
    except CoupleFull:
        await message.answer("❌ В этой паре уже два участника.")
        return

    await message.answer("🎉 Вы теперь пара! Начинайте свайпать: /swipe")


@router.message(Command("leave_couple"))
async def cmd_leave_couple(message: Message):
    await message.answer("Точно покинуть пару?", reply_markup=get_leave_confirm_keyboard())


@router.callback_query(F.data == "leave_couple_confirm")
async def callback_leave_confirm(callback: CallbackQuery, db_session: AsyncSession, member: User):
    try:
        await CoupleService(db_session).leave_couple(member.id)
        await callback.message.edit_text("💔 Вы покинули пару.")
    except NotInCouple:
        await callback.message.edit_text("❌ Вы не состоите в паре.")
    await callback.answer()


@router.callback_query(F.data == "leave_couple_cancel")
async def callback_leave_cancel(callback: CallbackQuery):
    await callback.message.edit_text("👌 Остаёмся вместе.")
    await callback.answer()


@router.callback_query(F.data == "leave_couple")
async def callback_leave(callback: CallbackQuery):
    await cmd_leave_couple(callback.message)
    await callback.answer()


@router.callback_query(F.data == "create_couple")
async def callback_create_couple(callback: CallbackQuery, db_session: AsyncSession, member: User):
    await cmd_create_couple(callback.message, db_session, member)
    await callback.answer()


@router.callback_query(F.data == "join_couple")
async def callback_join_couple(callback: CallbackQuery, state: FSMContext):
    await callback.message.answer("Введите код приглашения от партнёра:")
    await state.set_state(CoupleStates.waiting_for_invite_code)
    await callback.answer()
