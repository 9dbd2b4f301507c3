from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class UserCreate(BaseModel):
    display_name: str
    email: Optional[str] = None
    phone: Optional[str] = None

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None

class UserSummary(BaseModel):
    uid: str
    display_name: str
    email: str = ""
    phone: str = ""
