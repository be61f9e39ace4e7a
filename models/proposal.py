# models/proposal.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON, ForeignKey
from models.base import Base
from utils.dates import utcnow


class Proposal(Base):
    __tablename__ = "proposals"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False)  # date_spot, restaurant, activity, other, ...
    image_url = Column(String(1024), nullable=True)
    images = Column(JSON, default=list)
    image_storage_ids = Column(JSON, default=list)  # ссылки на объектное хранилище
    price = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)
    url = Column(String(1024), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)  # None для пресетов
    couple_id = Column(Integer, ForeignKey("couples.id", ondelete="CASCADE"), nullable=True, index=True)  # None для пресетов
    candidate_dates = Column(JSON, default=list)
    is_preset = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)  # мягкое удаление
    created_at = Column(DateTime, default=utcnow)
