from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
import uuid

from app.database import Base

class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    from_user_id = Column(String, ForeignKey("users.id"), index=True)
    to_user_id = Column(String, ForeignKey("users.id"), index=True)
    from_user_name = Column(String, nullable=True)
    to_user_name = Column(String, nullable=True)
    status = Column(String, default="pending")  # pending, accepted, rejected
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
