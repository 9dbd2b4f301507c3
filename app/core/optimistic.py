import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from app.core.record_store import Record, RecordStore
from app.services import notification_service
from app.utils.time_utils import format_relative_time

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    SYNCED = "synced"
    PENDING = "pending"
    ROLLED_BACK = "rolled_back"


@dataclass
class InboxEntry:
    record: Record
    state: SyncState = SyncState.SYNCED
    previous_is_read: Optional[bool] = None

    @property
    def id(self) -> str:
        return self.record["id"]

    @property
    def is_read(self) -> bool:
        return bool(self.record.get("is_read"))

    @property
    def age(self) -> str:
        created_at = self.record.get("created_at")
        return format_relative_time(created_at) if created_at else ""


class NotificationInbox:
    """
    A user's notifications as the client sees them.

    Read-state changes are applied locally before the store confirms them.
    If the store rejects the change, the entry is put back the way it was,
    marked ROLLED_BACK, and the error is re-raised to the caller.
    """

    def __init__(self, store: RecordStore, user_id: str):
        self.store = store
        self.user_id = user_id
        self.entries: List[InboxEntry] = []

    async def refresh(self) -> List[InboxEntry]:
        records = await notification_service.get_notifications(self.store, self.user_id)
        self.entries = [InboxEntry(record=dict(record)) for record in records]
        return self.entries

    def get(self, notification_id: str) -> Optional[InboxEntry]:
        for entry in self.entries:
            if entry.id == notification_id:
                return entry
        return None

    @property
    def unread_count(self) -> int:
        return sum(1 for entry in self.entries if not entry.is_read)

    def _apply(self, entry: InboxEntry, is_read: bool) -> None:
        entry.previous_is_read = entry.is_read
        entry.record["is_read"] = is_read
        entry.state = SyncState.PENDING

    def _rollback(self, entry: InboxEntry) -> None:
        entry.record["is_read"] = entry.previous_is_read
        entry.previous_is_read = None
        entry.state = SyncState.ROLLED_BACK

    def _confirm(self, entry: InboxEntry) -> None:
        entry.previous_is_read = None
        entry.state = SyncState.SYNCED

    async def mark_as_read(self, notification_id: str) -> InboxEntry:
        entry = self.get(notification_id)
        if entry is None:
            raise KeyError(notification_id)
        self._apply(entry, True)
        try:
            await notification_service.mark_as_read(self.store, notification_id, self.user_id)
        except Exception:
            logger.warning(f"Rolling back read state of notification {notification_id}")
            self._rollback(entry)
            raise
        self._confirm(entry)
        return entry

    async def mark_all_as_read(self) -> int:
        """
        Mark every unread entry read in one store update. On failure all of
        them are rolled back together.
        """
        unread = [entry for entry in self.entries if not entry.is_read]
        if not unread:
            return 0
        for entry in unread:
            self._apply(entry, True)
        try:
            await notification_service.mark_all_as_read(self.store, self.user_id)
        except Exception:
            logger.warning(f"Rolling back mark-all-read for user {self.user_id}")
            for entry in unread:
                self._rollback(entry)
            raise
        for entry in unread:
            self._confirm(entry)
        return len(unread)

    def states(self) -> Dict[str, SyncState]:
        return {entry.id: entry.state for entry in self.entries}
