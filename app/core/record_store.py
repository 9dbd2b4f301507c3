import asyncio
import inspect
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Union

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.errors import NotFoundError, TransientError, WriteError
from app.models import EmergencyReport, Friend, FriendRequest, Notification, Profile, User

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Filter = Dict[str, Any]

TABLES = {
    model.__tablename__: model
    for model in (User, Profile, Notification, EmergencyReport, FriendRequest, Friend)
}


@dataclass
class ChangeEvent:
    table: str
    event: str  # INSERT, UPDATE or DELETE
    new: Optional[Record] = None
    old: Optional[Record] = None

    @property
    def record(self) -> Record:
        return self.new if self.new is not None else (self.old or {})


ChangeCallback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]
Predicate = Union[None, Filter, Callable[[Record], bool]]


class Subscription:
    """A live registration on a table's change feed. Calling it unsubscribes."""

    def __init__(self, store: "RecordStore", table: str, predicate: Predicate, on_change: ChangeCallback):
        self.store = store
        self.table = table
        self.predicate = predicate
        self.on_change = on_change
        self.active = True
        # Deliveries to one subscriber run in commit order
        self.last_delivery: Optional[asyncio.Task] = None

    def matches(self, event: ChangeEvent) -> bool:
        if self.predicate is None:
            return True
        rows = [row for row in (event.new, event.old) if row is not None]
        if callable(self.predicate):
            return any(self.predicate(row) for row in rows)
        return any(
            all(row.get(key) == value for key, value in self.predicate.items())
            for row in rows
        )

    def __call__(self) -> None:
        if self.active:
            self.active = False
            self.store._remove_subscription(self)


async def invoke_callback(callback: Callable[..., Any], *args) -> None:
    """Call a sync or async callback and wait for it."""
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class RecordStore:
    """
    Generic CRUD and change-feed access to the named tables.

    Every call runs in its own session and commits on its own; nothing spans
    calls, so multi-step workflows are not atomic. Records go in and come out
    as plain dicts of column values.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._deliveries: Set[asyncio.Task] = set()

    @staticmethod
    def _model(table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}")

    @staticmethod
    def _to_record(obj) -> Record:
        return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}

    @staticmethod
    def _conditions(model, filter: Optional[Filter]) -> list:
        # None matches NULL; callers drop keys they do not want to filter on
        return [
            getattr(model, key).is_(None) if value is None else getattr(model, key) == value
            for key, value in (filter or {}).items()
        ]

    @staticmethod
    def _require_filter(table: str, filter: Optional[Filter]) -> None:
        if not filter:
            raise ValueError(f"Refusing to write to every row of {table} without a filter")

    async def create(self, table: str, fields: Record) -> Record:
        records = await self.create_many(table, [fields])
        return records[0]

    async def create_many(self, table: str, rows: Iterable[Record]) -> List[Record]:
        """
        Insert several rows in a single transaction.

        Raises:
            WriteError: If the store rejects any of the rows; none are kept.
        """
        model = self._model(table)
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                objs = [model(**{"created_at": now, **fields}) for fields in rows]
                session.add_all(objs)
                await session.commit()
                records = [self._to_record(obj) for obj in objs]
        except SQLAlchemyError as e:
            logger.error(f"Error creating record in {table}: {e}")
            raise WriteError(f"Could not save to {table}") from e

        self._publish([ChangeEvent(table, "INSERT", new=record) for record in records])
        return records

    async def find(
        self,
        table: str,
        filter: Optional[Filter] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        model = self._model(table)
        query = select(model).where(*self._conditions(model, filter))
        if order_by:
            column = getattr(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            query = query.limit(limit)
        return await self._fetch(table, query)

    async def find_one(self, table: str, filter: Filter) -> Optional[Record]:
        records = await self.find(table, filter, limit=1)
        return records[0] if records else None

    async def search(
        self,
        table: str,
        term: str,
        columns: Iterable[str],
        exclude: Optional[Filter] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """
        Case-insensitive substring match of `term` against any of `columns`.
        Rows whose `exclude` columns equal the given values are left out.
        `order_by` sorts case-insensitively.
        """
        model = self._model(table)
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = select(model).where(
            or_(*[getattr(model, column).ilike(pattern, escape="\\") for column in columns])
        )
        for key, value in (exclude or {}).items():
            column = getattr(model, key)
            query = query.where(or_(column != value, column.is_(None)))
        if order_by:
            query = query.order_by(func.lower(getattr(model, order_by)).asc())
        if limit is not None:
            query = query.limit(limit)
        return await self._fetch(table, query)

    async def update(self, table: str, filter: Filter, patch: Record) -> Record:
        """
        Apply `patch` to the rows matching `filter` and return the first one.

        Raises:
            NotFoundError: If no row matches.
            WriteError: If the store rejects the update.
        """
        records = await self._update(table, filter, patch)
        if not records:
            raise NotFoundError(f"No matching record in {table}")
        return records[0]

    async def update_many(self, table: str, filter: Filter, patch: Record) -> int:
        return len(await self._update(table, filter, patch))

    async def delete(self, table: str, filter: Filter) -> int:
        return await self.delete_any(table, [filter])

    async def delete_any(self, table: str, filters: List[Filter]) -> int:
        """Delete the rows matching any of `filters` in a single transaction."""
        model = self._model(table)
        for filter in filters or [None]:
            self._require_filter(table, filter)
        condition = or_(*[and_(*self._conditions(model, filter)) for filter in filters])
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(model).where(condition))
                removed = [self._to_record(obj) for obj in result.scalars().all()]
                if removed:
                    await session.execute(delete(model).where(condition))
                    await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error deleting record in {table}: {e}")
            raise WriteError(f"Could not delete from {table}") from e

        self._publish([ChangeEvent(table, "DELETE", old=record) for record in removed])
        return len(removed)

    def subscribe(self, table: str, predicate: Predicate, on_change: ChangeCallback) -> Subscription:
        """
        Register `on_change` for committed changes on `table`.

        `predicate` is None (every row), an exact-match filter dict, or a
        callable over the changed row. The returned handle unsubscribes when
        called; callers must call it on teardown or the subscription lives
        as long as the store.
        Handlers run in background tasks once the write has returned, one
        change at a time per subscription; `drain` waits for them.
        """
        self._model(table)
        subscription = Subscription(self, table, predicate, on_change)
        self._subscriptions.setdefault(table, []).append(subscription)
        logger.debug(f"Subscribed to {table} changes ({self.subscriber_count(table)} active)")
        return subscription

    def subscriber_count(self, table: str) -> int:
        return len(self._subscriptions.get(table, []))

    def _remove_subscription(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.table, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)

    async def _update(self, table: str, filter: Filter, patch: Record) -> List[Record]:
        model = self._model(table)
        self._require_filter(table, filter)
        events = []
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(model).where(*self._conditions(model, filter)))
                objs = result.scalars().all()
                old_records = [self._to_record(obj) for obj in objs]
                stamped = {**patch, "updated_at": datetime.now(timezone.utc)} if hasattr(model, "updated_at") else patch
                for obj in objs:
                    for key, value in stamped.items():
                        setattr(obj, key, value)
                await session.commit()
                for old, obj in zip(old_records, objs):
                    events.append(ChangeEvent(table, "UPDATE", new=self._to_record(obj), old=old))
        except SQLAlchemyError as e:
            logger.error(f"Error updating record in {table}: {e}")
            raise WriteError(f"Could not update {table}") from e

        self._publish(events)
        return [event.new for event in events]

    async def _fetch(self, table: str, query) -> List[Record]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                return [self._to_record(obj) for obj in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error finding records in {table}: {e}")
            raise TransientError(f"Could not read {table}") from e

    def _publish(self, events: List[ChangeEvent]) -> None:
        """Hand committed changes to matching subscribers without waiting for them."""
        for event in events:
            for subscription in list(self._subscriptions.get(event.table, [])):
                if not subscription.active or not subscription.matches(event):
                    continue
                previous = subscription.last_delivery
                task = asyncio.create_task(self._deliver(subscription, event, previous))
                subscription.last_delivery = task
                self._deliveries.add(task)
                task.add_done_callback(self._deliveries.discard)

    async def _deliver(self, subscription: Subscription, event: ChangeEvent, previous: Optional[asyncio.Task]) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait({previous})
        if not subscription.active:
            return
        try:
            await invoke_callback(subscription.on_change, event)
        except Exception:
            logger.exception(f"Change handler for {event.table} failed")

    async def drain(self) -> None:
        """Wait until every change dispatched so far has reached its subscribers."""
        while self._deliveries:
            await asyncio.wait(set(self._deliveries))
