"""Tests for persisted date plans."""

from datetime import datetime

import pytest
from sqlalchemy import func, select

from core.exceptions import InvalidStatusTransition, MatchNotFound, PlanNotConfirmable, PlanNotFound, ValidationError
from models.match import Match
from models.notification import PushNotification
from models.plan import Plan
from services.couple_service import CoupleService
from services.match_service import MatchService
from services.plan_negotiator import PlanNegotiator
from services.plan_service import PlanService, normalize_slots
from services.swipe_service import SwipeService


async def plan_count(session):
    return (await session.execute(select(func.count()).select_from(Plan))).scalar_one()


class TestNormalizeSlots:
    def test_sorted_and_padded(self):
        slots = normalize_slots([{"date": "2024-06-03", "time": "9:00"}, {"date": "2024-06-01"}])
        assert slots == [
            {"date": "2024-06-01", "time": None},
            {"date": "2024-06-03", "time": "09:00"},
        ]

    def test_invalid_slot(self):
        with pytest.raises(ValidationError):
            normalize_slots([{"time": "10:00"}])


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_draft(self, session, couple):
        alice, _, couple_id = couple
        plan_id = await PlanService(session).create(
            couple_id, "Каток", [1], [{"date": "2024-06-01"}], created_by=alice.id
        )

        plan = await PlanService(session).get_by_id(plan_id)
        assert plan.status == "draft"
        assert plan.candidate_slots == [{"date": "2024-06-01", "time": None}]
        assert plan.proposals == []

    @pytest.mark.asyncio
    async def test_confirmed_needs_date_and_time(self, session, couple):
        alice, _, couple_id = couple
        with pytest.raises(PlanNotConfirmable) as exc:
            await PlanService(session).create(
                couple_id, "Каток", [], [], created_by=alice.id, status="confirmed", final_date="2024-06-01"
            )
        assert exc.value.missing == ["final_time"]
        assert await plan_count(session) == 0

    @pytest.mark.asyncio
    async def test_unknown_status(self, session, couple):
        alice, _, couple_id = couple
        with pytest.raises(ValidationError):
            await PlanService(session).create(couple_id, "Каток", [], [], created_by=alice.id, status="done")

    @pytest.mark.asyncio
    async def test_confirmed_notifies_partner(self, session, couple):
        alice, bob, couple_id = couple
        await PlanService(session).create(
            couple_id, "Каток", [], [], created_by=bob.id,
            status="confirmed", final_date="2024-06-01", final_time="19:00",
        )

        result = await session.execute(select(PushNotification))
        notifications = result.scalars().all()
        assert [n.user_id for n in notifications] == [alice.id]
        assert notifications[0].notification_type == "plan_confirmed"
        assert "2024-06-01" in notifications[0].body

    @pytest.mark.asyncio
    async def test_save_draft_from_negotiator(self, session, couple, make_preset):
        alice, _, couple_id = couple
        preset = await make_preset(title="Каток")
        negotiator = PlanNegotiator(title="Каток", proposal_ids=[preset.id], partner_dates=["2024-06-03"])
        negotiator.selected.add("2024-06-03")
        negotiator.choose_final_date("2024-06-03")
        negotiator.set_final_time("18:00")

        plan_id = await PlanService(session).save_draft(couple_id, alice.id, negotiator.confirm())

        plan = await PlanService(session).get_by_id(plan_id)
        assert plan.status == "confirmed"
        assert plan.final_time == "18:00"
        assert [p.title for p in plan.proposals] == ["Каток"]


class TestUpdate:
    @pytest.mark.asyncio
    async def test_confirm_existing_plan(self, session, couple):
        alice, bob, couple_id = couple
        service = PlanService(session)
        plan_id = await service.create(couple_id, "Каток", [], [], created_by=alice.id)

        await service.confirm(plan_id, "2024-06-01", "19:30", meeting_place="Парк", caller_id=bob.id)

        plan = await service.get_by_id(plan_id)
        assert plan.status == "confirmed"
        assert plan.meeting_place == "Парк"
        result = await session.execute(select(PushNotification.user_id))
        assert result.scalars().all() == [alice.id]

    @pytest.mark.asyncio
    async def test_confirm_without_time_leaves_plan_unchanged(self, session, couple):
        alice, _, couple_id = couple
        service = PlanService(session)
        plan_id = await service.create(couple_id, "Каток", [], [], created_by=alice.id)

        with pytest.raises(PlanNotConfirmable):
            await service.update(plan_id, status="confirmed", final_date="2024-06-01")

        plan = await session.get(Plan, plan_id)
        assert plan.status == "draft"
        assert plan.final_date is None

    @pytest.mark.asyncio
    async def test_unknown_field(self, session, couple):
        alice, _, couple_id = couple
        service = PlanService(session)
        plan_id = await service.create(couple_id, "Каток", [], [], created_by=alice.id)
        with pytest.raises(ValidationError):
            await service.update(plan_id, couple_id=99)

    @pytest.mark.asyncio
    async def test_invalid_date(self, session, couple):
        alice, _, couple_id = couple
        service = PlanService(session)
        plan_id = await service.create(couple_id, "Каток", [], [], created_by=alice.id)
        with pytest.raises(ValidationError):
            await service.update(plan_id, final_date="01.06.2024")

    @pytest.mark.asyncio
    async def test_missing_plan(self, session):
        with pytest.raises(PlanNotFound):
            await PlanService(session).update(404, title="x")


class TestQueries:
    @pytest.mark.asyncio
    async def test_lists(self, session, couple):
        alice, _, couple_id = couple
        service = PlanService(session)
        draft_id = await service.create(couple_id, "Черновик", [], [], created_by=alice.id)
        confirmed_id = await service.create(
            couple_id, "Свидание", [], [], created_by=alice.id,
            status="confirmed", final_date="2024-06-01", final_time="19:00",
        )

        assert [p.id for p in await service.get_for_couple(couple_id)] == [confirmed_id, draft_id]
        assert [p.id for p in await service.get_confirmed_for_couple(couple_id)] == [confirmed_id]

    @pytest.mark.asyncio
    async def test_remove(self, session, couple):
        alice, _, couple_id = couple
        service = PlanService(session)
        plan_id = await service.create(couple_id, "Каток", [], [], created_by=alice.id)

        await service.remove(plan_id)
        assert await service.get_by_id(plan_id) is None


async def matched_preset(session, couple, make_preset):
    alice, bob, couple_id = couple
    preset = await make_preset(title="Каток")
    swipes = SwipeService(session)
    # alice свайпает второй: уведомление о мэтче уходит bob, у которого нет токена
    await swipes.create_and_check_match(bob.id, preset.id, "right", couple_id, alice.id)
    result = await swipes.create_and_check_match(alice.id, preset.id, "right", couple_id, bob.id)
    return preset, result.match_id


def confirmed_draft(proposal_id):
    negotiator = PlanNegotiator(title="Каток", proposal_ids=[proposal_id], partner_dates=["2030-01-11"])
    negotiator.selected.add("2030-01-11")
    negotiator.choose_final_date("2030-01-11")
    negotiator.set_final_time("19:30")
    return negotiator.confirm()


class TestConfirmForMatch:
    @pytest.mark.asyncio
    async def test_plan_and_match_saved_together(self, session, couple, make_preset):
        alice, bob, couple_id = couple
        preset, match_id = await matched_preset(session, couple, make_preset)

        plan_id = await PlanService(session).confirm_for_match(match_id, couple_id, bob.id, confirmed_draft(preset.id))

        plan = await PlanService(session).get_by_id(plan_id)
        assert plan.status == "confirmed"
        match = await session.get(Match, match_id)
        assert match.status == "scheduled"
        assert match.scheduled_date == datetime(2030, 1, 11, 19, 30)
        result = await session.execute(select(PushNotification.user_id))
        assert result.scalars().all() == [alice.id]

    @pytest.mark.asyncio
    async def test_completed_match_leaves_no_plan_or_notification(self, session, couple, make_preset):
        _, bob, couple_id = couple
        preset, match_id = await matched_preset(session, couple, make_preset)
        await MatchService(session).update_status(match_id, "completed")

        with pytest.raises(InvalidStatusTransition):
            await PlanService(session).confirm_for_match(match_id, couple_id, bob.id, confirmed_draft(preset.id))

        assert await plan_count(session) == 0
        assert (await session.execute(select(func.count()).select_from(PushNotification))).scalar_one() == 0
        assert (await session.get(Match, match_id)).status == "completed"

    @pytest.mark.asyncio
    async def test_other_couple_match_rejected(self, session, couple, make_user, make_preset):
        preset, match_id = await matched_preset(session, couple, make_preset)
        carol = await make_user("tg-carol")
        other_couple_id, _ = await CoupleService(session).create(carol.id)

        with pytest.raises(MatchNotFound):
            await PlanService(session).confirm_for_match(match_id, other_couple_id, carol.id, confirmed_draft(preset.id))
        assert await plan_count(session) == 0
