# /services/swipe_service.py
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select

from models.proposal import Proposal
from models.swipe import Swipe
from services.base import BaseService
from services.match_service import MatchResult, MatchService
from services.storage import PrefixStorageResolver, ProposalView, StorageResolver, to_view
from utils.dates import utcnow
from utils.validation import normalize_direction


@dataclass
class SwipeHistoryItem:
    swipe_id: int
    direction: str
    created_at: Optional[datetime]
    proposal: Optional[ProposalView]


class SwipeService(BaseService):
    """Журнал свайпов: одно решение на (пользователь, предложение)"""

    def __init__(self, db_session, storage: Optional[StorageResolver] = None):
        super().__init__(db_session)
        self.storage = storage or PrefixStorageResolver()
        self.matches = MatchService(db_session, storage=self.storage)

    async def record(self, user_id: int, proposal_id: int, direction: str) -> Swipe:
        """
        Записать свайп (без commit). Повторный свайп перезаписывает направление,
        тот же самый ничего не меняет.
        """
        direction = normalize_direction(direction)
        existing = await self.get_swipe(user_id, proposal_id)

        if existing:
            if existing.direction != direction:
                self.logger.debug(
                    f"User {user_id} changed swipe on {proposal_id}: {existing.direction} -> {direction}"
                )
                existing.direction = direction
                await self.flush()
            return existing

        swipe = Swipe(
            user_id=user_id,
            proposal_id=proposal_id,
            direction=direction,
            created_at=utcnow(),
        )
        self.db_session.add(swipe)
        await self.flush()
        return swipe

    async def create(self, user_id: int, proposal_id: int, direction: str) -> int:
        swipe = await self.record(user_id, proposal_id, direction)
        await self.commit()
        return swipe.id

    async def create_and_check_match(self, user_id: int, proposal_id: int, direction: str,
                                     couple_id: int, partner_id: int) -> MatchResult:
        """Записать свайп и, если партнёр тоже «за», создать мэтч. Одна единица работы"""
        swipe = await self.record(user_id, proposal_id, direction)
        result = await self.matches.reconcile(
            user_id=user_id,
            proposal_id=proposal_id,
            direction=swipe.direction,
            couple_id=couple_id,
            partner_id=partner_id,
        )
        await self.commit()
        return result

    async def get_swipe(self, user_id: int, proposal_id: int) -> Optional[Swipe]:
        result = await self.db_session.execute(
            select(Swipe).where(Swipe.user_id == user_id, Swipe.proposal_id == proposal_id)
        )
        return result.scalar_one_or_none()

    async def would_change(self, user_id: int, proposal_id: int, direction: str) -> bool:
        """Новый свайп или смена направления. Повтор того же свайпа ничего не меняет"""
        direction = normalize_direction(direction)
        existing = await self.get_swipe(user_id, proposal_id)
        return existing is None or existing.direction != direction

    async def has_swiped(self, user_id: int, proposal_id: int) -> Optional[Swipe]:
        return await self.get_swipe(user_id, proposal_id)

    async def get_swiped_proposal_ids(self, user_id: int) -> List[int]:
        result = await self.db_session.execute(
            select(Swipe.proposal_id).where(Swipe.user_id == user_id)
        )
        return list(result.scalars().all())

    async def get_couple_swipes_for_proposal(self, proposal_id: int,
                                             user_ids: List[int]) -> Dict[int, Optional[Swipe]]:
        """Свайпы участников пары по одному предложению: {user_id: Swipe | None}"""
        return {user_id: await self.get_swipe(user_id, proposal_id) for user_id in user_ids}

    async def get_history(self, user_id: int, limit: int = 50) -> List[SwipeHistoryItem]:
        """История свайпов без авто-свайпов на собственные предложения"""
        result = await self.db_session.execute(
            select(Swipe)
            .where(Swipe.user_id == user_id)
            .order_by(Swipe.created_at.desc(), Swipe.id.desc())
            .limit(limit)
        )

        items = []
        for swipe in result.scalars().all():
            proposal = await self.db_session.get(Proposal, swipe.proposal_id)
            if proposal and proposal.created_by == user_id:
                continue
            items.append(
                SwipeHistoryItem(
                    swipe_id=swipe.id,
                    direction=swipe.direction,
                    created_at=swipe.created_at,
                    proposal=await to_view(proposal, self.storage) if proposal else None,
                )
            )
        return items
