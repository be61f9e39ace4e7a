# /services/proposal_service.py
from typing import Any, Dict, List, Optional

from sqlalchemy import select, and_

from core.exceptions import ProposalNotFound, ValidationError
from models.proposal import Proposal
from models.swipe import Swipe
from services.base import BaseService
from services.storage import PrefixStorageResolver, ProposalView, StorageResolver, resolve_urls, to_view
from utils.dates import sorted_unique_dates, utcnow

UPDATABLE_FIELDS = {
    "title", "description", "category", "image_url", "images",
    "price", "location", "url", "is_active",
}


class ProposalService(BaseService):
    """Идеи для свиданий: глобальные пресеты и предложения пары"""

    def __init__(self, db_session, storage: Optional[StorageResolver] = None):
        super().__init__(db_session)
        self.storage = storage or PrefixStorageResolver()

    async def create(self, created_by: int, couple_id: int, title: str, category: str,
                     description: Optional[str] = None, image_url: Optional[str] = None,
                     images: Optional[List[str]] = None, image_storage_ids: Optional[List[str]] = None,
                     price: Optional[str] = None, location: Optional[str] = None,
                     url: Optional[str] = None, candidate_dates: Optional[List[str]] = None) -> int:
        """
        Создать предложение пары. Автор сразу получает свайп right на него:
        в его колоде оно не появится, а партнёру хватит одного лайка для мэтча.
        """
        if not title or not title.strip():
            raise ValidationError("title is required")
        if not category:
            raise ValidationError("category is required")

        images = list(images or [])
        if image_storage_ids:
            resolved = await resolve_urls(self.storage, image_storage_ids)
            if resolved:
                images = resolved
                image_url = resolved[0]

        now = utcnow()
        proposal = Proposal(
            title=title.strip(),
            description=description,
            category=category,
            image_url=image_url,
            images=images,
            image_storage_ids=list(image_storage_ids or []),
            price=price,
            location=location,
            url=url,
            created_by=created_by,
            couple_id=couple_id,
            candidate_dates=sorted_unique_dates(candidate_dates or []),
            is_preset=False,
            is_active=True,
            created_at=now,
        )
        self.db_session.add(proposal)
        await self.flush()

        self.db_session.add(
            Swipe(user_id=created_by, proposal_id=proposal.id, direction="right", created_at=now)
        )
        await self.commit()

        self.logger.info(f"Proposal {proposal.id} created by user {created_by} for couple {couple_id}")
        return proposal.id

    async def update(self, proposal_id: int, **updates: Any) -> int:
        """Обновить поля предложения; None-значения пропускаются"""
        proposal = await self.db_session.get(Proposal, proposal_id)
        if not proposal:
            raise ProposalNotFound(proposal_id)

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown proposal fields: {', '.join(sorted(unknown))}")

        for key, value in updates.items():
            if value is not None:
                setattr(proposal, key, value)

        await self.commit()
        return proposal.id

    async def remove(self, proposal_id: int) -> int:
        """Мягкое удаление"""
        return await self.update(proposal_id, is_active=False)

    async def get_by_id(self, proposal_id: int) -> Optional[ProposalView]:
        proposal = await self.db_session.get(Proposal, proposal_id)
        if not proposal:
            return None
        return await to_view(proposal, self.storage)

    async def get_presets(self, category: Optional[str] = None) -> List[ProposalView]:
        conditions = [Proposal.is_preset == True, Proposal.is_active == True]  # noqa: E712
        if category:
            conditions.append(Proposal.category == category)
        result = await self.db_session.execute(
            select(Proposal).where(and_(*conditions)).order_by(Proposal.id)
        )
        return [await to_view(p, self.storage) for p in result.scalars().all()]

    async def get_for_couple(self, couple_id: int, include_presets: bool = True) -> List[ProposalView]:
        """Предложения пары, затем (опционально) пресеты"""
        proposals = await self._couple_proposals(couple_id)
        if include_presets:
            proposals += await self._presets()
        return [await to_view(p, self.storage) for p in proposals]

    async def get_swipable_for_user(self, couple_id: int, user_id: int) -> List[ProposalView]:
        """Колода пользователя: всё активное, на что он ещё не свайпал"""
        result = await self.db_session.execute(
            select(Swipe.proposal_id).where(Swipe.user_id == user_id)
        )
        swiped_ids = set(result.scalars().all())

        proposals = await self._couple_proposals(couple_id) + await self._presets()
        return [await to_view(p, self.storage) for p in proposals if p.id not in swiped_ids]

    async def seed_presets(self, presets: List[Dict[str, Any]]) -> int:
        """Загрузить пресеты, если их ещё нет. Возвращает число добавленных"""
        result = await self.db_session.execute(
            select(Proposal.id).where(Proposal.is_preset == True).limit(1)  # noqa: E712
        )
        if result.scalar_one_or_none() is not None:
            self.logger.info("Presets already exist")
            return 0

        now = utcnow()
        for data in presets:
            self.db_session.add(
                Proposal(**data, is_preset=True, is_active=True, created_at=now)
            )
        await self.commit()
        self.logger.info(f"✅ Seeded {len(presets)} preset proposals")
        return len(presets)

    async def _couple_proposals(self, couple_id: int) -> List[Proposal]:
        result = await self.db_session.execute(
            select(Proposal)
            .where(Proposal.couple_id == couple_id, Proposal.is_active == True)  # noqa: E712
            .order_by(Proposal.id)
        )
        return list(result.scalars().all())

    async def _presets(self) -> List[Proposal]:
        result = await self.db_session.execute(
            select(Proposal)
            .where(Proposal.is_preset == True, Proposal.is_active == True)  # noqa: E712
            .order_by(Proposal.id)
        )
        return list(result.scalars().all())
