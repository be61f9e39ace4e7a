# /services/plan_service.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from core.exceptions import PlanNotConfirmable, PlanNotFound, ValidationError
from models.plan import Plan
from models.proposal import Proposal
from services.base import BaseService
from services.match_service import MatchService
from services.notification_service import NotificationService
from services.plan_negotiator import PlanDraft
from services.storage import PrefixStorageResolver, ProposalView, StorageResolver, to_view
from services.user_service import UserService
from utils.dates import DATE_FORMAT, TIME_FORMAT, normalize_date, normalize_time, utcnow
from utils.validation import normalize_plan_status

UPDATABLE_FIELDS = {
    "title", "proposal_ids", "candidate_slots", "final_date",
    "final_time", "meeting_place", "status",
}


@dataclass
class PlanView:
    id: int
    couple_id: int
    title: str
    status: str
    candidate_slots: List[Dict[str, Optional[str]]]
    final_date: Optional[str] = None
    final_time: Optional[str] = None
    meeting_place: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    proposal_ids: List[int] = field(default_factory=list)
    proposals: List[ProposalView] = field(default_factory=list)


def normalize_slots(slots: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Optional[str]]]:
    """[{date, time?}] с проверкой формата, по возрастанию даты/времени"""
    normalized = []
    for slot in slots or []:
        if not isinstance(slot, dict) or not slot.get("date"):
            raise ValidationError(f"Invalid candidate slot: {slot!r}")
        try:
            date = normalize_date(slot["date"])
            time = normalize_time(slot["time"]) if slot.get("time") else None
        except ValueError as e:
            raise ValidationError(f"Invalid candidate slot {slot!r}: {e}") from e
        normalized.append({"date": date, "time": time})
    return sorted(normalized, key=lambda s: (s["date"], s["time"] or ""))


class PlanService(BaseService):
    """Планы свиданий пары"""

    def __init__(self, db_session, storage: Optional[StorageResolver] = None):
        super().__init__(db_session)
        self.users = UserService(db_session)
        self.notifications = NotificationService(db_session)
        self.storage = storage or PrefixStorageResolver()
        self.matches = MatchService(db_session, storage=self.storage)

    async def create(self, couple_id: int, title: str, proposal_ids: List[int],
                     candidate_slots: List[Dict[str, Any]], created_by: int,
                     status: str = "draft", final_date: Optional[str] = None,
                     final_time: Optional[str] = None, meeting_place: Optional[str] = None) -> int:
        plan = await self._add(
            couple_id, title, proposal_ids, candidate_slots, created_by,
            status=status, final_date=final_date, final_time=final_time, meeting_place=meeting_place,
        )
        await self.commit()
        self.logger.info(f"Plan {plan.id} created for couple {couple_id} ({plan.status})")
        return plan.id

    async def _add(self, couple_id: int, title: str, proposal_ids: List[int],
                   candidate_slots: List[Dict[str, Any]], created_by: int,
                   status: str = "draft", final_date: Optional[str] = None,
                   final_time: Optional[str] = None, meeting_place: Optional[str] = None) -> Plan:
        """Проверить и добавить план в сессию (flush, без commit)"""
        if not title or not title.strip():
            raise ValidationError("title is required")
        status = normalize_plan_status(status)

        plan = Plan(
            couple_id=couple_id,
            title=title.strip(),
            proposal_ids=list(proposal_ids),
            candidate_slots=normalize_slots(candidate_slots),
            status=status,
            final_date=self._clean_date(final_date),
            final_time=self._clean_time(final_time),
            meeting_place=meeting_place,
            created_by=created_by,
            created_at=utcnow(),
        )
        if status == "confirmed":
            self._ensure_confirmable(plan.final_date, plan.final_time)

        self.db_session.add(plan)
        await self.flush()

        if status == "confirmed":
            await self._notify_confirmed(plan, caller_id=created_by)
        return plan

    async def save_draft(self, couple_id: int, created_by: int, draft: PlanDraft) -> int:
        """Сохранить результат клиентского согласования"""
        return await self.create(
            couple_id=couple_id,
            title=draft.title,
            proposal_ids=draft.proposal_ids,
            candidate_slots=draft.candidate_slots,
            created_by=created_by,
            status=draft.status,
            final_date=draft.final_date,
            final_time=draft.final_time,
            meeting_place=draft.meeting_place,
        )

    async def confirm_for_match(self, match_id: int, couple_id: int, created_by: int, draft: PlanDraft) -> int:
        """
        Подтвердить план по мэтчу и перевести мэтч в scheduled.
        Одна единица работы: переход статуса проверяется до того, как план
        и уведомление партнёру попадут в сессию.
        """
        final_date = self._clean_date(draft.final_date)
        final_time = self._clean_time(draft.final_time)
        self._ensure_confirmable(final_date, final_time)

        match = await self.matches.require(match_id, couple_id)
        self.matches.check_transition(match, "scheduled")

        plan = await self._add(
            couple_id=couple_id,
            title=draft.title,
            proposal_ids=draft.proposal_ids,
            candidate_slots=draft.candidate_slots,
            created_by=created_by,
            status="confirmed",
            final_date=final_date,
            final_time=final_time,
            meeting_place=draft.meeting_place,
        )
        self.matches.apply_status(
            match,
            "scheduled",
            scheduled_date=datetime.strptime(f"{final_date} {final_time}", f"{DATE_FORMAT} {TIME_FORMAT}"),
        )
        await self.commit()
        self.logger.info(f"Plan {plan.id} confirmed for match {match_id} (couple {couple_id})")
        return plan.id

    async def update(self, plan_id: int, caller_id: Optional[int] = None, **updates: Any) -> int:
        """Частичное обновление; None-значения пропускаются"""
        plan = await self._require(plan_id)

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown plan fields: {', '.join(sorted(unknown))}")

        clean = {k: v for k, v in updates.items() if v is not None}
        if "status" in clean:
            clean["status"] = normalize_plan_status(clean["status"])
        if "candidate_slots" in clean:
            clean["candidate_slots"] = normalize_slots(clean["candidate_slots"])
        if "final_date" in clean:
            clean["final_date"] = self._clean_date(clean["final_date"])
        if "final_time" in clean:
            clean["final_time"] = self._clean_time(clean["final_time"])

        was_confirmed = plan.status == "confirmed"
        if clean.get("status", plan.status) == "confirmed":
            self._ensure_confirmable(
                final_date=clean.get("final_date", plan.final_date),
                final_time=clean.get("final_time", plan.final_time),
            )

        for key, value in clean.items():
            setattr(plan, key, value)

        if plan.status == "confirmed" and not was_confirmed:
            await self._notify_confirmed(plan, caller_id=caller_id or plan.created_by)

        await self.commit()
        return plan.id

    async def confirm(self, plan_id: int, final_date: str, final_time: str,
                      meeting_place: Optional[str] = None, caller_id: Optional[int] = None) -> int:
        return await self.update(
            plan_id,
            caller_id=caller_id,
            final_date=final_date,
            final_time=final_time,
            meeting_place=meeting_place,
            status="confirmed",
        )

    async def remove(self, plan_id: int) -> int:
        plan = await self._require(plan_id)
        await self.db_session.delete(plan)
        await self.commit()
        return plan_id

    async def get_by_id(self, plan_id: int) -> Optional[PlanView]:
        plan = await self.db_session.get(Plan, plan_id)
        if not plan:
            return None
        return await self._to_view(plan)

    async def get_for_couple(self, couple_id: int) -> List[PlanView]:
        result = await self.db_session.execute(
            select(Plan).where(Plan.couple_id == couple_id).order_by(Plan.created_at.desc(), Plan.id.desc())
        )
        return [await self._to_view(p) for p in result.scalars().all()]

    async def get_confirmed_for_couple(self, couple_id: int) -> List[PlanView]:
        result = await self.db_session.execute(
            select(Plan)
            .where(Plan.couple_id == couple_id, Plan.status == "confirmed")
            .order_by(Plan.created_at.asc(), Plan.id.asc())
        )
        return [await self._to_view(p) for p in result.scalars().all()]

    # =========================================================================

    async def _require(self, plan_id: int) -> Plan:
        plan = await self.db_session.get(Plan, plan_id)
        if not plan:
            raise PlanNotFound(plan_id)
        return plan

    @staticmethod
    def _ensure_confirmable(final_date: Optional[str], final_time: Optional[str]) -> None:
        missing = []
        if not final_date:
            missing.append("final_date")
        if not final_time:
            missing.append("final_time")
        if missing:
            raise PlanNotConfirmable(missing)

    @staticmethod
    def _clean_date(raw: Optional[str]) -> Optional[str]:
        if not raw:
            return None
        try:
            return normalize_date(raw)
        except ValueError as e:
            raise ValidationError(f"Invalid date '{raw}': {e}") from e

    @staticmethod
    def _clean_time(raw: Optional[str]) -> Optional[str]:
        if not raw:
            return None
        try:
            return normalize_time(raw)
        except ValueError as e:
            raise ValidationError(f"Invalid time '{raw}': {e}") from e

    async def _notify_confirmed(self, plan: Plan, caller_id: Optional[int]) -> None:
        if caller_id is None:
            return
        partner = await self.users.get_partner(plan.couple_id, caller_id)
        await self.notifications.notify_plan_confirmed(partner, plan.title, plan.final_date)

    async def _to_view(self, plan: Plan) -> PlanView:
        proposals = []
        for proposal_id in plan.proposal_ids or []:
            proposal = await self.db_session.get(Proposal, proposal_id)
            if proposal is not None:
                proposals.append(await to_view(proposal, self.storage))

        return PlanView(
            id=plan.id,
            couple_id=plan.couple_id,
            title=plan.title,
            status=plan.status,
            candidate_slots=list(plan.candidate_slots or []),
            final_date=plan.final_date,
            final_time=plan.final_time,
            meeting_place=plan.meeting_place,
            created_by=plan.created_by,
            created_at=plan.created_at,
            proposal_ids=list(plan.proposal_ids or []),
            proposals=proposals,
        )
