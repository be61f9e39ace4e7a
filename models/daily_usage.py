# models/daily_usage.py
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from models.base import Base


class DailyUsage(Base):
    __tablename__ = "daily_usage"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_usage_user_date"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    like_count = Column(Integer, default=0, nullable=False)
    super_like_count = Column(Integer, default=0, nullable=False)
    proposal_create_count = Column(Integer, default=0, nullable=False)
