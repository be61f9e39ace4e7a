# /handlers/swipe.py
"""Колода предложений и свайпы"""

import logging
from typing import Optional

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import PairDateException
from keyboards.swipe_kb import get_swipe_keyboard
from models.user import User
from services.proposal_service import ProposalService
from services.storage import ProposalView
from services.swipe_service import SwipeService
from services.usage_service import UsageService
from services.user_service import UserService

router = Router()
logger = logging.getLogger(__name__)

USAGE_BY_DIRECTION = {"right": "like", "super_like": "super_like"}


def format_proposal(proposal: ProposalView) -> str:
    lines = [f"<b>{proposal.title}</b>"]
    if proposal.description:
        lines.append(proposal.description)
    if proposal.location:
        lines.append(f"📍 {proposal.location}")
    if proposal.price:
        lines.append(f"💴 {proposal.price}")
    if proposal.url:
        lines.append(proposal.url)
    return "\n".join(lines)


async def send_next_card(message: Message, db_session: AsyncSession, member: User) -> Optional[ProposalView]:
    """Показать следующее предложение из колоды"""
    deck = await ProposalService(db_session).get_swipable_for_user(member.couple_id, member.id)
    if not deck:
        await message.answer("🎉 Вы просмотрели все предложения! Добавьте своё: /propose")
        return None

    proposal = deck[0]
    text = format_proposal(proposal)
    if proposal.image_url:
        await message.answer_photo(
            proposal.image_url, caption=text, parse_mode="HTML",
            reply_markup=get_swipe_keyboard(proposal.id),
        )
    else:
        await message.answer(text, parse_mode="HTML", reply_markup=get_swipe_keyboard(proposal.id))
    return proposal


@router.message(Command("swipe"))
async def cmd_swipe(message: Message, db_session: AsyncSession, member: User):
    if not member.couple_id:
        await message.answer("❌ Сначала создайте пару: /couple")
        return
    await send_next_card(message, db_session, member)


@router.callback_query(F.data == "open_swipe")
async def callback_open_swipe(callback: CallbackQuery, db_session: AsyncSession, member: User):
    await cmd_swipe(callback.message, db_session, member)
    await callback.answer()


@router.callback_query(F.data.startswith("swipe:"))
async def callback_swipe(callback: CallbackQuery, db_session: AsyncSession, member: User):
    """swipe:<direction>:<proposal_id>"""
    _, direction, raw_id = callback.data.split(":", 2)
    proposal_id = int(raw_id)

    if not member.couple_id:
        await callback.answer("Вы не в паре", show_alert=True)
        return

    users = UserService(db_session)
    partner = await users.get_partner(member.couple_id, member.id)
    if partner is None:
        await callback.answer("Партнёр ещё не присоединился", show_alert=True)
        return

    swipes = SwipeService(db_session)
    usage = UsageService(db_session)
    usage_type = USAGE_BY_DIRECTION.get(direction)
    # Повторный свайп в том же направлении квоту не тратит
    if usage_type and not await swipes.would_change(member.id, proposal_id, direction):
        usage_type = None
    if usage_type:
        limit = await usage.check_limit(member.id, usage_type, is_premium=member.is_premium())
        if not limit.has_remaining:
            await callback.answer(f"Лимит на сегодня исчерпан ({limit.limit})", show_alert=True)
            return

    try:
        if usage_type:
            await usage.increment(member.id, usage_type)
        result = await swipes.create_and_check_match(
            user_id=member.id,
            proposal_id=proposal_id,
            direction=direction,
            couple_id=member.couple_id,
            partner_id=partner.id,
        )
    except PairDateException as e:
        logger.error(f"Swipe failed for user {member.id}: {e}")
        await callback.answer("❌ Не удалось сохранить свайп", show_alert=True)
        return

    await callback.message.edit_reply_markup(reply_markup=None)
    if result.matched:
        await callback.message.answer("💞 <b>Это мэтч!</b> Смотрите /matches", parse_mode="HTML")
    await callback.answer()
    await send_next_card(callback.message, db_session, member)
