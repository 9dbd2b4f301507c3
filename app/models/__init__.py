from .user import User
from .profile import Profile
from .notifications import Notification
from .emergency import EmergencyReport
from .friends.friends import Friend
from .friends.friend_requests import FriendRequest

__all__ = ["User", "Profile", "Notification", "EmergencyReport", "FriendRequest", "Friend"]
