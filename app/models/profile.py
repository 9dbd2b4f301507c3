import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from app.database import Base

class Profile(Base):
    __tablename__ = "profiles"

    # Older rows reuse the auth user id as the primary key; newer ones keep it in user_id
    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, index=True, nullable=True)
    full_name = Column(String, nullable=True)
    email = Column(String, index=True, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
