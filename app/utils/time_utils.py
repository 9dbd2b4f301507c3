from datetime import datetime, timezone
from typing import Optional


def format_relative_time(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """
    Short age label for a notification: "Just now", "5m ago", "3h ago",
    "2d ago", or the date once it is a week old.

    Naive timestamps are treated as UTC.
    """
    now = now or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = (now - timestamp).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return timestamp.date().isoformat()
