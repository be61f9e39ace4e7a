# models/notification.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON
from models.base import Base
from utils.dates import utcnow


class PushNotification(Base):
    """Отложенная задача на отправку push-уведомления"""
    __tablename__ = "push_notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    push_token = Column(String(255), nullable=False)
    notification_type = Column(String(50), nullable=False)  # match_created, plan_confirmed
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    data = Column(JSON, default=dict)
    scheduled_time = Column(DateTime, nullable=False)
    sent = Column(Boolean, default=False)
    sent_at = Column(DateTime)
    failed = Column(Boolean, default=False)
    error = Column(Text)
    created_at = Column(DateTime, default=utcnow)