"""
Tests for bot handlers called directly: Telegram objects are AsyncMock,
FSM lives in MemoryStorage, the database is the shared SQLite session.
"""

from unittest.mock import AsyncMock

import pytest
from aiogram.filters import CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.base import StorageKey
from aiogram.fsm.storage.memory import MemoryStorage
from sqlalchemy import func, select

from handlers import matches, plan, start, swipe
from handlers.plan import PlanStates
from models.couple import Couple
from models.match import Match
from models.notification import PushNotification
from models.plan import Plan
from services.couple_service import CoupleService
from services.match_service import MatchService
from services.swipe_service import SwipeService
from services.usage_service import UsageService


def make_state(user_id: int) -> FSMContext:
    return FSMContext(storage=MemoryStorage(), key=StorageKey(bot_id=1, chat_id=user_id, user_id=user_id))


def make_callback(data: str) -> AsyncMock:
    callback = AsyncMock()
    callback.data = data
    return callback


def make_message(text: str = "") -> AsyncMock:
    message = AsyncMock()
    message.text = text
    return message


def answered_text(mock) -> str:
    return mock.answer.call_args.args[0]


async def count(session, model):
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def matched_preset(session, couple, make_preset):
    alice, bob, couple_id = couple
    preset = await make_preset(title="Каток")
    swipes = SwipeService(session)
    await swipes.create_and_check_match(bob.id, preset.id, "right", couple_id, alice.id)
    result = await swipes.create_and_check_match(alice.id, preset.id, "right", couple_id, bob.id)
    return result.match_id


async def pick_dates(session, member, state, match_id, *dates):
    """Открыть мастер по мэтчу, отметить даты и нажать «Готово»"""
    await plan.callback_plan_match(make_callback(f"plan_match:{match_id}"), session, member, state)
    for value in dates:
        await plan.callback_toggle_date(make_callback(f"plan_date:{value}"), state)
    done = make_callback("plan_dates_done")
    await plan.callback_dates_done(done, session, member, state)
    return done


class TestDeepLinkJoin:
    @pytest.mark.asyncio
    async def test_creator_own_link_keeps_couple_pending(self, session, make_user):
        alice = await make_user("tg-alice")
        couple_id, code = await CoupleService(session).create(alice.id)
        message = make_message()

        await start.cmd_start(message, CommandObject(command="start", args=f"join_{code}"), session, alice)

        assert (await session.get(Couple, couple_id)).status == "pending"
        assert "уже в этой паре" in answered_text(message)

    @pytest.mark.asyncio
    async def test_partner_link_activates_couple(self, session, make_user):
        alice = await make_user("tg-alice")
        bob = await make_user("tg-bob")
        couple_id, code = await CoupleService(session).create(alice.id)

        await start.cmd_start(make_message(), CommandObject(command="start", args=f"join_{code}"), session, bob)

        assert (await session.get(Couple, couple_id)).status == "active"
        assert bob.couple_id == couple_id

    @pytest.mark.asyncio
    async def test_paired_user_is_not_moved(self, session, couple, make_user):
        _, bob, couple_id = couple
        carol = await make_user("tg-carol")
        _, code = await CoupleService(session).create(carol.id)
        message = make_message()

        await start.cmd_start(message, CommandObject(command="start", args=f"join_{code}"), session, bob)

        assert bob.couple_id == couple_id
        assert (await session.get(Couple, couple_id)).status == "active"
        assert "/leave_couple" in answered_text(message)

    @pytest.mark.asyncio
    async def test_unknown_code(self, session, make_user):
        bob = await make_user("tg-bob")
        message = make_message()

        await start.cmd_start(message, CommandObject(command="start", args="join_NOPE42"), session, bob)

        assert "Неверный код" in answered_text(message)
        assert bob.couple_id is None


class TestPlanWizard:
    @pytest.mark.asyncio
    async def test_own_dates_never_count_as_partner_dates(self, session, couple, make_preset):
        alice, _, _ = couple
        match_id = await matched_preset(session, couple, make_preset)
        state = make_state(alice.id)

        await pick_dates(session, alice, state, match_id, "2030-01-10")
        assert await state.get_state() is None

        # Повторный проход: свои даты отмечены, дат партнёра нет
        await plan.callback_plan_match(make_callback(f"plan_match:{match_id}"), session, alice, state)
        negotiator = (await state.get_data())["negotiator"]
        assert negotiator["selected"] == ["2030-01-10"]
        assert negotiator["partner_dates"] == []

        done = make_callback("plan_dates_done")
        await plan.callback_dates_done(done, session, alice, state)
        assert await state.get_state() is None
        assert "отправлены партнёру" in answered_text(done.message)

        match = await session.get(Match, match_id)
        assert match.status == "matched"
        assert match.partner_dates_by == alice.id

    @pytest.mark.asyncio
    async def test_common_dates_then_confirm(self, session, couple, make_preset):
        alice, bob, _ = couple
        match_id = await matched_preset(session, couple, make_preset)
        await pick_dates(session, alice, make_state(alice.id), match_id, "2030-01-10", "2030-01-11")

        state = make_state(bob.id)
        done = await pick_dates(session, bob, state, match_id, "2030-01-11", "2030-01-12")
        assert await state.get_state() == PlanStates.choosing_final_date.state
        keyboard = done.message.answer.call_args.kwargs["reply_markup"]
        assert [b.callback_data for row in keyboard.inline_keyboard for b in row] == ["plan_final:2030-01-11"]

        await plan.callback_final_date(make_callback("plan_final:2030-01-11"), state)
        await plan.process_time(make_message("19:30"), state)
        await plan.process_place(make_message("Парк Горького"), state)
        await plan.callback_plan_confirm(make_callback("plan_confirm"), session, bob, state)

        match = await session.get(Match, match_id)
        assert match.status == "scheduled"
        result = await session.execute(select(Plan))
        saved = result.scalars().one()
        assert (saved.final_date, saved.final_time, saved.meeting_place) == ("2030-01-11", "19:30", "Парк Горького")
        assert await state.get_state() is None

    @pytest.mark.asyncio
    async def test_non_common_final_date_rejected(self, session, couple, make_preset):
        alice, bob, _ = couple
        match_id = await matched_preset(session, couple, make_preset)
        await pick_dates(session, alice, make_state(alice.id), match_id, "2030-01-10")
        state = make_state(bob.id)
        await pick_dates(session, bob, state, match_id, "2030-01-10")

        callback = make_callback("plan_final:2030-02-01")
        await plan.callback_final_date(callback, state)

        assert callback.answer.call_args.kwargs.get("show_alert")
        assert await state.get_state() == PlanStates.choosing_final_date.state

    @pytest.mark.asyncio
    async def test_failed_status_change_saves_nothing(self, session, couple, make_preset):
        alice, bob, _ = couple
        match_id = await matched_preset(session, couple, make_preset)
        await pick_dates(session, alice, make_state(alice.id), match_id, "2030-01-10")
        state = make_state(bob.id)
        await pick_dates(session, bob, state, match_id, "2030-01-10")
        await plan.callback_final_date(make_callback("plan_final:2030-01-10"), state)
        await plan.process_time(make_message("18:00"), state)
        await plan.process_place(make_message("-"), state)

        await MatchService(session).update_status(match_id, "completed")
        confirm = make_callback("plan_confirm")
        await plan.callback_plan_confirm(confirm, session, bob, state)

        assert "Не удалось" in answered_text(confirm)
        assert await count(session, Plan) == 0
        assert await count(session, PushNotification) == 0

    @pytest.mark.asyncio
    async def test_foreign_match_rejected(self, session, couple, make_user, make_preset):
        match_id = await matched_preset(session, couple, make_preset)
        carol = await make_user("tg-carol")
        await CoupleService(session).create(carol.id)
        state = make_state(carol.id)
        callback = make_callback(f"plan_match:{match_id}")

        await plan.callback_plan_match(callback, session, carol, state)

        assert answered_text(callback) == "Мэтч не найден"
        assert await state.get_state() is None


class TestMatchStatusCallback:
    @pytest.mark.asyncio
    async def test_foreign_couple_cannot_change_status(self, session, couple, make_user, make_preset):
        match_id = await matched_preset(session, couple, make_preset)
        carol = await make_user("tg-carol")
        await CoupleService(session).create(carol.id)
        callback = make_callback(f"match_status:{match_id}:completed")

        await matches.callback_match_status(callback, session, carol)

        assert answered_text(callback) == "Мэтч не найден"
        assert (await session.get(Match, match_id)).status == "matched"

    @pytest.mark.asyncio
    async def test_member_changes_status(self, session, couple, make_preset):
        alice, _, _ = couple
        match_id = await matched_preset(session, couple, make_preset)

        await matches.callback_match_status(make_callback(f"match_status:{match_id}:completed"), session, alice)

        assert (await session.get(Match, match_id)).status == "completed"


class TestSwipeQuota:
    @pytest.mark.asyncio
    async def test_repeat_swipe_does_not_spend_like(self, session, couple, make_preset):
        alice, _, _ = couple
        preset = await make_preset()

        await swipe.callback_swipe(make_callback(f"swipe:right:{preset.id}"), session, alice)
        await swipe.callback_swipe(make_callback(f"swipe:right:{preset.id}"), session, alice)

        assert (await UsageService(session).get_today(alice.id)).like_count == 1

    @pytest.mark.asyncio
    async def test_changed_direction_spends_quota(self, session, couple, make_preset):
        alice, _, _ = couple
        preset = await make_preset()

        await swipe.callback_swipe(make_callback(f"swipe:right:{preset.id}"), session, alice)
        await swipe.callback_swipe(make_callback(f"swipe:super_like:{preset.id}"), session, alice)

        usage = await UsageService(session).get_today(alice.id)
        assert (usage.like_count, usage.super_like_count) == (1, 1)
