# models/couple.py
from sqlalchemy import Column, Integer, String, DateTime
from models.base import Base
from utils.dates import utcnow


class Couple(Base):
    __tablename__ = "couples"

    id = Column(Integer, primary_key=True)
    invite_code = Column(String(16), nullable=False, index=True)
    status = Column(String(20), default="pending", nullable=False)  # pending, active
    created_at = Column(DateTime, default=utcnow)
    activated_at = Column(DateTime, nullable=True)  # ставится, когда присоединяется второй участник

    @property
    def is_active(self) -> bool:
        return self.status == "active"
