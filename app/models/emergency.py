import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Float, Text
from sqlalchemy.sql import func

from app.database import Base

class EmergencyReport(Base):
    __tablename__ = "emergencies"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), index=True)
    user_name = Column(String)
    emergency_type = Column(String)
    specific_type = Column(String, index=True)
    location = Column(String, index=True)
    description = Column(Text)
    status = Column(String, default="active")  # active, pending, resolved
    priority = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
