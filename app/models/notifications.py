import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy import func

from ..database import Base

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), index=True)
    type = Column(String)  # emergency, info, success, warning
    title = Column(String)
    message = Column(String)
    priority = Column(String, default="medium")
    action_type = Column(String, nullable=True)
    action_data = Column(JSON, nullable=True)
    location = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    emergency_type = Column(String, nullable=True)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
