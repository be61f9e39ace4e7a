# /handlers/proposals.py
"""Создание собственного предложения пары"""

import logging

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import Message, CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ValidationError
from keyboards.plan_kb import CATEGORIES, get_category_keyboard
from models.user import User
from services.proposal_service import ProposalService
from services.usage_service import UsageService
from utils.validation import parse_optional

router = Router()
logger = logging.getLogger(__name__)


class ProposalStates(StatesGroup):
    waiting_for_title = State()
    waiting_for_category = State()
    waiting_for_description = State()


@router.message(Command("propose"))
async def cmd_propose(message: Message, member: User, state: FSMContext):
    if not member.couple_id:
        await message.answer("❌ Сначала создайте пару: /couple")
        return
    await state.set_state(ProposalStates.waiting_for_title)
    await message.answer("💡 Куда хотите сходить? Напишите название:")


@router.message(ProposalStates.waiting_for_title)
async def process_title(message: Message, state: FSMContext):
    title = (message.text or "").strip()
    if not title:
        await message.answer("❌ Название не может быть пустым.")
        return
    await state.update_data(title=title[:255])
    await state.set_state(ProposalStates.waiting_for_category)
    await message.answer("Выберите категорию:", reply_markup=get_category_keyboard())


@router.callback_query(ProposalStates.waiting_for_category, F.data.startswith("proposal_category:"))
async def callback_category(callback: CallbackQuery, state: FSMContext):
    category = callback.data.split(":", 1)[1]
    if category not in CATEGORIES:
        await callback.answer("Неизвестная категория", show_alert=True)
        return
    await state.update_data(category=category)
    await state.set_state(ProposalStates.waiting_for_description)
    await callback.message.answer("📝 Добавьте описание (или «-», чтобы пропустить):")
    await callback.answer()


@router.message(ProposalStates.waiting_for_description)
async def process_description(message: Message, db_session: AsyncSession, member: User, state: FSMContext):
    data = await state.get_data()
    await state.clear()

    try:
        await UsageService(db_session).increment(member.id, "proposal")
        await ProposalService(db_session).create(
            created_by=member.id,
            couple_id=member.couple_id,
            title=data["title"],
            category=data["category"],
            description=parse_optional(message.text or ""),
        )
    except ValidationError as e:
        await message.answer(f"❌ {e}")
        return

    await message.answer("✅ Предложение добавлено! Партнёр увидит его в колоде /swipe")
