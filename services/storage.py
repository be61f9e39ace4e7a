# services/storage.py
"""
Разрешение ссылок на объектное хранилище в URL для картинок предложений.
Ошибки разрешения не пробрасываются: запись возвращается с исходными полями.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol

from core.config import settings
from models.proposal import Proposal

logger = logging.getLogger(__name__)


class StorageResolver(Protocol):
    async def get_url(self, storage_id: str) -> Optional[str]:
        ...


class PrefixStorageResolver:
    """URL = базовый адрес хранилища + идентификатор объекта"""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or settings.STORAGE_BASE_URL).rstrip("/")

    async def get_url(self, storage_id: str) -> Optional[str]:
        if not storage_id:
            return None
        return f"{self.base_url}/{storage_id}"


@dataclass
class ProposalView:
    """Предложение для отображения; images_resolved=True, если картинки взяты из хранилища"""
    id: int
    title: str
    category: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    images: List[str] = field(default_factory=list)
    price: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    created_by: Optional[int] = None
    couple_id: Optional[int] = None
    is_preset: bool = False
    is_active: bool = True
    images_resolved: bool = False


async def resolve_urls(resolver: StorageResolver, storage_ids: Iterable[str]) -> List[str]:
    urls = []
    for storage_id in storage_ids:
        try:
            url = await resolver.get_url(storage_id)
        except Exception as e:
            logger.warning(f"Failed to resolve storage id {storage_id}: {e}")
            continue
        if url:
            urls.append(url)
    return urls


async def to_view(proposal: Proposal, resolver: StorageResolver) -> ProposalView:
    view = ProposalView(
        id=proposal.id,
        title=proposal.title,
        category=proposal.category,
        description=proposal.description,
        image_url=proposal.image_url,
        images=list(proposal.images or []),
        price=proposal.price,
        location=proposal.location,
        url=proposal.url,
        created_by=proposal.created_by,
        couple_id=proposal.couple_id,
        is_preset=bool(proposal.is_preset),
        is_active=bool(proposal.is_active),
    )

    if proposal.image_storage_ids:
        urls = await resolve_urls(resolver, proposal.image_storage_ids)
        if urls:
            view.images = urls
            view.image_url = urls[0]
            view.images_resolved = True

    return view
