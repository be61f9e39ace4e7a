# /handlers/matches.py
"""Список мэтчей пары и смена статуса"""

import logging

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InvalidStatusTransition, MatchNotFound, ValidationError
from keyboards.swipe_kb import STATUS_LABELS, get_match_actions_keyboard, get_matches_keyboard
from models.user import User
from services.match_service import MatchService

router = Router()
logger = logging.getLogger(__name__)

DIRECTION_LABELS = {"right": "❤️", "super_like": "⭐", "left": "👎"}


@router.message(Command("matches"))
async def cmd_matches(message: Message, db_session: AsyncSession, member: User):
    if not member.couple_id:
        await message.answer("❌ Сначала создайте пару: /couple")
        return

    matches = await MatchService(db_session).get_for_couple(member.couple_id, member.id)
    if not matches:
        await message.answer("💤 Мэтчей пока нет. Свайпайте: /swipe")
        return

    await message.answer(
        f"💞 <b>Ваши мэтчи ({len(matches)})</b>",
        parse_mode="HTML",
        reply_markup=get_matches_keyboard(matches),
    )


@router.callback_query(F.data == "open_matches")
async def callback_open_matches(callback: CallbackQuery, db_session: AsyncSession, member: User):
    await cmd_matches(callback.message, db_session, member)
    await callback.answer()


@router.callback_query(F.data.startswith("match:"))
async def callback_match_details(callback: CallbackQuery, db_session: AsyncSession, member: User):
    match_id = int(callback.data.split(":", 1)[1])
    matches = await MatchService(db_session).get_for_couple(member.couple_id, member.id)
    match = next((m for m in matches if m.id == match_id), None)
    if match is None:
        await callback.answer("Мэтч не найден", show_alert=True)
        return

    title = match.proposal.title if match.proposal else f"#{match.proposal_id}"
    lines = [
        f"<b>{title}</b>",
        f"Статус: {STATUS_LABELS.get(match.status, match.status)}",
        f"Партнёр: {DIRECTION_LABELS.get(match.partner_direction, match.partner_direction)}",
    ]
    if match.scheduled_date:
        lines.append(f"📅 {match.scheduled_date.strftime('%d.%m.%Y')}")
    if match.partner_selected_dates:
        lines.append("Даты партнёра: " + ", ".join(match.partner_selected_dates))
    if match.notes:
        lines.append(f"📝 {match.notes}")

    await callback.message.answer(
        "\n".join(lines), parse_mode="HTML", reply_markup=get_match_actions_keyboard(match)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("match_status:"))
async def callback_match_status(callback: CallbackQuery, db_session: AsyncSession, member: User):
    """match_status:<match_id>:<status>"""
    _, raw_id, status = callback.data.split(":", 2)
    if not member.couple_id:
        await callback.answer("Вы не в паре", show_alert=True)
        return
    try:
        await MatchService(db_session).update_status(int(raw_id), status, couple_id=member.couple_id)
    except (MatchNotFound, ValidationError):
        await callback.answer("Мэтч не найден", show_alert=True)
        return
    except InvalidStatusTransition:
        await callback.answer("Статус уже изменён", show_alert=True)
        return

    await callback.message.edit_reply_markup(reply_markup=None)
    await callback.answer(STATUS_LABELS.get(status, status))
