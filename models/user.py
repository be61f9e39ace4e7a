# models/user.py

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from models.base import Base
from utils.dates import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String(255), unique=True, nullable=False, index=True)  # ← ID от провайдера авторизации
    email = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    couple_id = Column(Integer, ForeignKey("couples.id", ondelete="SET NULL"), nullable=True, index=True)
    anniversary_date = Column(DateTime, nullable=True)
    push_token = Column(String(255), nullable=True)
    subscription_status = Column(String(20), default="free")  # free, trial, active, expired
    subscription_tier = Column(String(20), nullable=True)  # monthly, yearly
    subscription_expiry = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def is_premium(self) -> bool:
        """Есть ли активная подписка или триал"""
        if self.subscription_status == "active":
            return bool(self.subscription_expiry and self.subscription_expiry > utcnow())
        return self.subscription_status == "trial"
