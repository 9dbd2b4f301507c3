from .user_service import get_user_by_id, get_user_by_email, resolve_user_id, register_user, search_users
from .notification_service import notify, fan_out

__all__ = ["get_user_by_id", "get_user_by_email", "resolve_user_id", "register_user", "search_users", "notify", "fan_out"]
