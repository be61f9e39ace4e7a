# models/plan.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey
from models.base import Base
from utils.dates import utcnow


class Plan(Base):
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True)
    couple_id = Column(Integer, ForeignKey("couples.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    proposal_ids = Column(JSON, default=list)
    candidate_slots = Column(JSON, default=list)  # [{"date": "YYYY-MM-DD", "time": "HH:MM" | None}]
    final_date = Column(String(10), nullable=True)  # YYYY-MM-DD
    final_time = Column(String(5), nullable=True)  # HH:MM
    meeting_place = Column(String(255), nullable=True)
    status = Column(String(20), default="draft", nullable=False)  # draft, proposed, confirmed
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
