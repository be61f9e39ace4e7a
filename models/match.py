# models/match.py
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey, UniqueConstraint
from models.base import Base
from utils.dates import utcnow


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("couple_id", "proposal_id", name="uq_matches_couple_proposal"),
    )

    id = Column(Integer, primary_key=True)
    couple_id = Column(Integer, ForeignKey("couples.id", ondelete="CASCADE"), nullable=False, index=True)
    proposal_id = Column(Integer, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    matched_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime, nullable=True)
    status = Column(String(20), default="matched", nullable=False)  # matched → scheduled → completed
    scheduled_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    partner_selected_dates = Column(JSON, nullable=True)  # ["YYYY-MM-DD", ...]
    partner_dates_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)  # чьи это даты
