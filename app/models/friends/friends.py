import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.database import Base

class Friend(Base):
    __tablename__ = "friends"

    # One row per direction; A->B and B->A are created together on accept
    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), index=True)
    friend_id = Column(String, ForeignKey("users.id"), index=True)
    friend_name = Column(String, nullable=True)
    friend_email = Column(String, nullable=True)
    status = Column(String, default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
