# /handlers/plan.py
"""
Мастер планирования свидания по мэтчу:
даты-кандидаты → общие с партнёром даты → итоговая дата → время → место → подтверждение.
Состояние мастера хранится в FSM как PlanNegotiator.to_dict().
Свои и партнёрские даты различаются по автору (MatchService.get_plan_dates).
"""

import logging

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import Message, CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import PairDateException, PlanNotConfirmable
from keyboards.plan_kb import get_common_dates_keyboard, get_dates_keyboard, get_plan_confirm_keyboard
from models.user import User
from services.match_service import MatchService
from services.plan_negotiator import CandidateDates, PlanNegotiator
from services.plan_service import PlanService
from services.proposal_service import ProposalService
from utils.dates import utcnow
from utils.validation import parse_optional

router = Router()
logger = logging.getLogger(__name__)


class PlanStates(StatesGroup):
    selecting_dates = State()
    choosing_final_date = State()
    waiting_for_time = State()
    waiting_for_place = State()
    confirming = State()


async def _load(state: FSMContext) -> PlanNegotiator:
    data = await state.get_data()
    return PlanNegotiator.from_dict(data.get("negotiator"))


async def _save(state: FSMContext, negotiator: PlanNegotiator) -> None:
    await state.update_data(negotiator=negotiator.to_dict())


@router.message(Command("plans"))
async def cmd_plans(message: Message, db_session: AsyncSession, member: User):
    """Подтверждённые планы пары"""
    if not member.couple_id:
        await message.answer("❌ Сначала создайте пару: /couple")
        return

    plans = await PlanService(db_session).get_confirmed_for_couple(member.couple_id)
    if not plans:
        await message.answer("📭 Подтверждённых планов пока нет. Выберите мэтч: /matches")
        return

    lines = ["📅 <b>Ваши свидания</b>\n"]
    for plan in plans:
        place = f", {plan.meeting_place}" if plan.meeting_place else ""
        lines.append(f"• <b>{plan.title}</b> — {plan.final_date} {plan.final_time}{place}")
    await message.answer("\n".join(lines), parse_mode="HTML")


@router.callback_query(F.data.startswith("plan_match:"))
async def callback_plan_match(callback: CallbackQuery, db_session: AsyncSession, member: User,
                              state: FSMContext):
    match_id = int(callback.data.split(":", 1)[1])
    matches = MatchService(db_session)
    match = await matches.get_for_member(match_id, member.couple_id)
    if match is None:
        await callback.answer("Мэтч не найден", show_alert=True)
        return

    proposal = await ProposalService(db_session).get_by_id(match.proposal_id)
    dates = await matches.get_plan_dates(match, member.id)

    negotiator = PlanNegotiator(
        title=proposal.title if proposal else "Свидание",
        proposal_ids=[match.proposal_id],
        selected=CandidateDates(dates.own),
        partner_dates=dates.partner,
    )
    await state.set_state(PlanStates.selecting_dates)
    await state.update_data(match_id=match_id)
    await _save(state, negotiator)

    await callback.message.answer(
        "🗓 Отметьте дни, когда вам удобно:",
        reply_markup=get_dates_keyboard(utcnow().date(), negotiator.selected),
    )
    await callback.answer()


@router.callback_query(PlanStates.selecting_dates, F.data.startswith("plan_date:"))
async def callback_toggle_date(callback: CallbackQuery, state: FSMContext):
    negotiator = await _load(state)
    negotiator.selected.toggle(callback.data.split(":", 1)[1])
    await _save(state, negotiator)

    await callback.message.edit_reply_markup(
        reply_markup=get_dates_keyboard(utcnow().date(), negotiator.selected)
    )
    await callback.answer()


@router.callback_query(PlanStates.selecting_dates, F.data == "plan_dates_done")
async def callback_dates_done(callback: CallbackQuery, db_session: AsyncSession, member: User,
                              state: FSMContext):
    negotiator = await _load(state)
    if not len(negotiator.selected):
        await callback.answer("Выберите хотя бы один день", show_alert=True)
        return

    data = await state.get_data()
    common = negotiator.common_dates()
    if not common:
        # Партнёр ещё не выбирал или пересечения нет: свои даты ждут его
        await MatchService(db_session).update_partner_dates(
            data["match_id"], negotiator.selected.as_list(),
            selected_by=member.id, couple_id=member.couple_id,
        )
        await state.clear()
        if negotiator.partner_dates:
            await callback.message.answer(
                "😔 Общих дат нет. Партнёр выбрал: " + ", ".join(negotiator.partner_dates)
                + "\n📨 Ваши даты отправлены партнёру."
            )
        else:
            await callback.message.answer("📨 Даты отправлены партнёру. Ждём его выбора!")
        await callback.answer()
        return

    await state.set_state(PlanStates.choosing_final_date)
    await callback.message.answer("💞 Общие даты — выберите одну:", reply_markup=get_common_dates_keyboard(common))
    await callback.answer()


@router.callback_query(PlanStates.choosing_final_date, F.data.startswith("plan_final:"))
async def callback_final_date(callback: CallbackQuery, state: FSMContext):
    negotiator = await _load(state)
    value = callback.data.split(":", 1)[1]
    if value not in negotiator.common_dates():
        await callback.answer("Эта дата не общая", show_alert=True)
        return
    negotiator.choose_final_date(value)
    await _save(state, negotiator)

    await state.set_state(PlanStates.waiting_for_time)
    await callback.message.answer(f"📅 {negotiator.final_date}. Во сколько встречаемся? (ЧЧ:ММ)")
    await callback.answer()


@router.message(PlanStates.waiting_for_time)
async def process_time(message: Message, state: FSMContext):
    negotiator = await _load(state)
    try:
        negotiator.set_final_time(message.text or "")
    except ValueError:
        await message.answer("❌ Введите время в формате ЧЧ:ММ, например 19:30")
        return
    await _save(state, negotiator)

    await state.set_state(PlanStates.waiting_for_place)
    await message.answer("📍 Где встречаемся? (или «-», чтобы пропустить)")


@router.message(PlanStates.waiting_for_place)
async def process_place(message: Message, state: FSMContext):
    negotiator = await _load(state)
    negotiator.set_meeting_place(parse_optional(message.text or ""))
    await _save(state, negotiator)

    await state.set_state(PlanStates.confirming)
    place = negotiator.meeting_place or "—"
    await message.answer(
        f"<b>{negotiator.title}</b>\n📅 {negotiator.final_date} {negotiator.final_time}\n📍 {place}",
        parse_mode="HTML",
        reply_markup=get_plan_confirm_keyboard(),
    )


@router.callback_query(PlanStates.confirming, F.data == "plan_confirm")
async def callback_plan_confirm(callback: CallbackQuery, db_session: AsyncSession, member: User,
                                state: FSMContext):
    negotiator = await _load(state)
    data = await state.get_data()

    try:
        draft = negotiator.confirm()
        await PlanService(db_session).confirm_for_match(data["match_id"], member.couple_id, member.id, draft)
    except PlanNotConfirmable:
        await callback.answer("Не хватает даты или времени", show_alert=True)
        return
    except PairDateException as e:
        logger.error(f"Plan confirmation failed for user {member.id}: {e}")
        await callback.answer("❌ Не удалось сохранить план", show_alert=True)
        return

    await state.clear()
    await callback.message.edit_reply_markup(reply_markup=None)
    await callback.message.answer("🎉 План подтверждён! Партнёр получит уведомление. /plans")
    await callback.answer()


@router.callback_query(F.data == "plan_cancel")
async def callback_plan_cancel(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    await callback.message.edit_reply_markup(reply_markup=None)
    await callback.answer("Отменено")
