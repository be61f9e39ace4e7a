# models/swipe.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from models.base import Base
from utils.dates import utcnow


class Swipe(Base):
    __tablename__ = "swipes"
    __table_args__ = (
        UniqueConstraint("user_id", "proposal_id", name="uq_swipes_user_proposal"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    proposal_id = Column(Integer, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    direction = Column(String(20), nullable=False)  # left, right, super_like
    created_at = Column(DateTime, default=utcnow)

    @property
    def is_positive(self) -> bool:
        return self.direction in ("right", "super_like")
