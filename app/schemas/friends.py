from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from enum import Enum as PyEnum

class FriendRequestStatus(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

class FriendStatus(str, PyEnum):
    ACTIVE = "active"

class FriendRequestCreate(BaseModel):
    to_user_id: str
    to_user_name: Optional[str] = None

class FriendRequestCreated(BaseModel):
    id: str

class FriendRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    from_user_id: str
    to_user_id: str
    from_user_name: Optional[str] = None
    to_user_name: Optional[str] = None
    status: FriendRequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class FriendResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    friend_id: str
    friend_name: Optional[str] = None
    friend_email: Optional[str] = None
    status: FriendStatus = FriendStatus.ACTIVE
    created_at: Optional[datetime] = None

class FriendStatusResponse(BaseModel):
    is_friend: bool
    has_pending_request: bool
    incoming_request_id: Optional[str] = None
