from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from enum import Enum as PyEnum

class NotificationType(str, PyEnum):
    EMERGENCY = "emergency"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"

class NotificationPriority(str, PyEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class NotificationActionType(str, PyEnum):
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    EMERGENCY_ALERT = "emergency_alert"

class NotificationFilter(str, PyEnum):
    ALL = "all"
    UNREAD = "unread"
    EMERGENCY = "emergency"

class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    action_type: Optional[NotificationActionType] = None
    action_data: Optional[Dict[str, Any]] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    emergency_type: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

class NotificationStatusUpdate(BaseModel):
    ids: List[str]
    is_read: bool = True
