# /services/match_service.py
"""
Сверка взаимных свайпов и мэтчи пары.

Мэтч на (пара, предложение) создаётся ровно один раз: вставка идёт через
INSERT ... ON CONFLICT DO NOTHING по уникальному ключу (couple_id, proposal_id),
поэтому одновременные свайпы обоих партнёров не дают дубликатов.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from core.exceptions import InvalidStatusTransition, MatchNotFound
from models.match import Match
from models.plan import Plan
from models.proposal import Proposal
from models.swipe import Swipe
from services.base import BaseService
from services.notification_service import NotificationService
from services.storage import PrefixStorageResolver, ProposalView, StorageResolver, to_view
from services.user_service import UserService
from utils.dates import sorted_unique_dates, utcnow
from utils.validation import MATCH_STATUSES, POSITIVE_DIRECTIONS, normalize_match_status


@dataclass
class MatchResult:
    matched: bool
    match_id: Optional[int] = None
    created: bool = False


@dataclass
class MatchView:
    id: int
    couple_id: int
    proposal_id: int
    status: str
    matched_at: Optional[datetime]
    proposal: Optional[ProposalView]
    partner_direction: str = "right"
    completed_at: Optional[datetime] = None
    scheduled_date: Optional[datetime] = None
    notes: Optional[str] = None
    partner_selected_dates: List[str] = field(default_factory=list)


@dataclass
class PlanDates:
    """Даты мастера планирования с точки зрения одного участника"""
    own: List[str] = field(default_factory=list)
    partner: List[str] = field(default_factory=list)


@dataclass
class CoupleStats:
    sent: int = 0
    sent_total: int = 1
    received: int = 0
    received_total: int = 1
    completed_dates: int = 0
    total_matches: int = 5
    sent_achieved: int = 0
    received_achieved: int = 0


class MatchService(BaseService):

    def __init__(self, db_session, storage: Optional[StorageResolver] = None):
        super().__init__(db_session)
        self.users = UserService(db_session)
        self.notifications = NotificationService(db_session)
        self.storage = storage or PrefixStorageResolver()

    # =========================================================================
    # СВЕРКА
    # =========================================================================

    async def reconcile(self, user_id: int, proposal_id: int, direction: str,
                        couple_id: int, partner_id: int) -> MatchResult:
        """
        Проверить, есть ли положительный свайп партнёра, и при необходимости
        создать мэтч. Свайп самого пользователя уже записан. Без commit.
        """
        if direction not in POSITIVE_DIRECTIONS:
            return MatchResult(matched=False)

        partner_swipe = await self._get_swipe(partner_id, proposal_id)
        if partner_swipe is None or not partner_swipe.is_positive:
            return MatchResult(matched=False)

        match_id, created = await self._insert_if_absent(couple_id, proposal_id)
        if created:
            self.logger.info(f"💞 Match {match_id} created for couple {couple_id} on proposal {proposal_id}")
            await self._notify_partner(couple_id, proposal_id, user_id)

        return MatchResult(matched=True, match_id=match_id, created=created)

    async def create_from_mutual_swipe(self, couple_id: int, proposal_id: int,
                                       caller_id: Optional[int] = None) -> int:
        """Создать мэтч напрямую (если его ещё нет) и уведомить партнёра вызывающего"""
        match_id, created = await self._insert_if_absent(couple_id, proposal_id)
        if created and caller_id is not None:
            await self._notify_partner(couple_id, proposal_id, caller_id)
        await self.commit()
        return match_id

    async def _insert_if_absent(self, couple_id: int, proposal_id: int):
        insert = pg_insert if self.dialect_name == "postgresql" else sqlite_insert
        stmt = (
            insert(Match)
            .values(
                couple_id=couple_id,
                proposal_id=proposal_id,
                matched_at=utcnow(),
                status="matched",
            )
            .on_conflict_do_nothing(index_elements=["couple_id", "proposal_id"])
            .returning(Match.id)
        )
        result = await self.db_session.execute(stmt)
        match_id = result.scalar_one_or_none()
        if match_id is not None:
            return match_id, True

        existing = await self.get_by_couple_and_proposal(couple_id, proposal_id)
        return existing.id, False

    async def _notify_partner(self, couple_id: int, proposal_id: int, caller_id: int) -> None:
        partner = await self.users.get_partner(couple_id, caller_id)
        proposal = await self.db_session.get(Proposal, proposal_id)
        await self.notifications.notify_match(partner, proposal.title if proposal else None)

    async def _get_swipe(self, user_id: int, proposal_id: int) -> Optional[Swipe]:
        result = await self.db_session.execute(
            select(Swipe).where(Swipe.user_id == user_id, Swipe.proposal_id == proposal_id)
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # ЧТЕНИЕ
    # =========================================================================

    async def get_by_id(self, match_id: int) -> Optional[Match]:
        return await self.db_session.get(Match, match_id)

    async def get_for_member(self, match_id: int, couple_id: Optional[int]) -> Optional[Match]:
        """Мэтч, только если он принадлежит паре участника"""
        match = await self.get_by_id(match_id)
        if match is None or couple_id is None or match.couple_id != couple_id:
            return None
        return match

    async def require(self, match_id: int, couple_id: Optional[int] = None) -> Match:
        match = await self.get_by_id(match_id)
        if not match or (couple_id is not None and match.couple_id != couple_id):
            raise MatchNotFound(match_id)
        return match

    async def get_plan_dates(self, match: Match, user_id: int) -> PlanDates:
        """
        Свои и партнёрские даты для мастера планирования.

        Даты-кандидаты предложения принадлежат его автору. partner_selected_dates
        принадлежат тому, кто их сохранил (partner_dates_by), поэтому свои же
        даты никогда не возвращаются как даты партнёра.
        """
        proposal = await self.db_session.get(Proposal, match.proposal_id)
        creator_id = proposal.created_by if proposal else None
        creator_dates = list(proposal.candidate_dates or []) if proposal else []

        dates = PlanDates()
        if creator_id == user_id:
            dates.own = creator_dates
        elif creator_id is not None:
            dates.partner = creator_dates

        stored = list(match.partner_selected_dates or [])
        if stored:
            if match.partner_dates_by == user_id:
                dates.own = stored
            else:
                dates.partner = stored

        return PlanDates(own=sorted_unique_dates(dates.own), partner=sorted_unique_dates(dates.partner))

    async def get_by_couple_and_proposal(self, couple_id: int, proposal_id: int) -> Optional[Match]:
        result = await self.db_session.execute(
            select(Match).where(Match.couple_id == couple_id, Match.proposal_id == proposal_id)
        )
        return result.scalars().first()

    async def get_for_couple(self, couple_id: int, current_user_id: Optional[int] = None) -> List[MatchView]:
        """Мэтчи пары (новые первыми) с предложением и направлением свайпа партнёра"""
        result = await self.db_session.execute(
            select(Match)
            .where(Match.couple_id == couple_id)
            .order_by(Match.matched_at.desc(), Match.id.desc())
        )
        matches = result.scalars().all()

        partner = None
        if current_user_id is not None:
            partner = await self.users.get_partner(couple_id, current_user_id)

        views = []
        for match in matches:
            view = await self._to_view(match)
            if partner is not None:
                partner_swipe = await self._get_swipe(partner.id, match.proposal_id)
                if partner_swipe is not None:
                    view.partner_direction = partner_swipe.direction
            views.append(view)
        return views

    async def get_scheduled_for_couple(self, couple_id: int) -> List[MatchView]:
        result = await self.db_session.execute(
            select(Match)
            .where(Match.couple_id == couple_id, Match.status.in_(("scheduled", "completed")))
            .order_by(Match.matched_at.asc(), Match.id.asc())
        )
        return [await self._to_view(m) for m in result.scalars().all()]

    async def _to_view(self, match: Match) -> MatchView:
        proposal = await self.db_session.get(Proposal, match.proposal_id)
        return MatchView(
            id=match.id,
            couple_id=match.couple_id,
            proposal_id=match.proposal_id,
            status=match.status,
            matched_at=match.matched_at,
            proposal=await to_view(proposal, self.storage) if proposal else None,
            completed_at=match.completed_at,
            scheduled_date=match.scheduled_date,
            notes=match.notes,
            partner_selected_dates=list(match.partner_selected_dates or []),
        )

    # =========================================================================
    # ИЗМЕНЕНИЕ
    # =========================================================================

    async def update_status(self, match_id: int, status: str, scheduled_date: Optional[datetime] = None,
                            notes: Optional[str] = None, couple_id: Optional[int] = None) -> int:
        """
        Сменить статус мэтча. Только вперёд: matched → scheduled → completed.
        С couple_id чужой мэтч не находится (MatchNotFound).
        """
        status = normalize_match_status(status)
        match = await self.require(match_id, couple_id)
        self.apply_status(match, status, scheduled_date=scheduled_date, notes=notes)

        await self.commit()
        return match.id

    @staticmethod
    def check_transition(match: Match, status: str) -> str:
        status = normalize_match_status(status)
        if MATCH_STATUSES.index(status) < MATCH_STATUSES.index(match.status):
            raise InvalidStatusTransition(match.status, status)
        return status

    @staticmethod
    def apply_status(match: Match, status: str, scheduled_date: Optional[datetime] = None,
                     notes: Optional[str] = None) -> None:
        """Проверить переход и изменить мэтч в сессии (без commit)"""
        status = MatchService.check_transition(match, status)

        match.status = status
        if scheduled_date is not None:
            match.scheduled_date = scheduled_date
        if notes is not None:
            match.notes = notes
        match.completed_at = utcnow() if status == "completed" else None

    async def update_partner_dates(self, match_id: int, partner_selected_dates: List[str],
                                   selected_by: Optional[int] = None,
                                   couple_id: Optional[int] = None) -> int:
        """Сохранить даты участника selected_by для второго партнёра"""
        match = await self.require(match_id, couple_id)

        match.partner_selected_dates = sorted_unique_dates(partner_selected_dates)
        match.partner_dates_by = selected_by
        await self.commit()
        self.logger.debug(f"Partner dates updated for match {match_id}: {match.partner_selected_dates}")
        return match.id

    # =========================================================================
    # СТАТИСТИКА
    # =========================================================================

    async def get_stats_for_couple(self, couple_id: int, user_id: Optional[int]) -> CoupleStats:
        """
        Кольца профиля: сколько предложений создал каждый и сколько из них
        дошло до свидания (scheduled/completed мэтчи + подтверждённые планы).
        """
        user = await self.users.get_by_id(user_id) if user_id is not None else None
        if user is None:
            return CoupleStats()

        partner = await self.users.get_partner(couple_id, user.id)

        sent = await self._count_active_proposals(user.id)
        received = await self._count_active_proposals(partner.id) if partner else 0
        total_proposals = sent + received

        result = await self.db_session.execute(select(Match).where(Match.couple_id == couple_id))
        matches = result.scalars().all()

        sent_achieved = 0
        received_achieved = 0

        def attribute(proposal: Optional[Proposal]):
            nonlocal sent_achieved, received_achieved
            if proposal is None or proposal.created_by is None:
                return
            if proposal.created_by == user.id:
                sent_achieved += 1
            elif partner is not None and proposal.created_by == partner.id:
                received_achieved += 1

        for match in matches:
            if match.status in ("scheduled", "completed"):
                attribute(await self.db_session.get(Proposal, match.proposal_id))

        result = await self.db_session.execute(
            select(Plan).where(Plan.couple_id == couple_id, Plan.status == "confirmed")
        )
        for plan in result.scalars().all():
            for proposal_id in plan.proposal_ids or []:
                attribute(await self.db_session.get(Proposal, proposal_id))

        return CoupleStats(
            sent=sent,
            sent_total=max(total_proposals, 1),
            received=received,
            received_total=max(total_proposals, 1),
            completed_dates=sent_achieved + received_achieved,
            total_matches=max(len(matches), 1),
            sent_achieved=sent_achieved,
            received_achieved=received_achieved,
        )

    async def _count_active_proposals(self, user_id: int) -> int:
        result = await self.db_session.execute(
            select(Proposal.id).where(Proposal.created_by == user_id, Proposal.is_active == True)  # noqa: E712
        )
        return len(result.all())
