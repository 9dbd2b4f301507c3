import logging
from typing import Dict, List, Optional

from app.config import settings
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.record_store import Record, RecordStore
from app.schemas.users import UserSummary
from app.services.notification_service import create_welcome_notification

logger = logging.getLogger(__name__)


async def get_user_by_id(store: RecordStore, user_id: str) -> Optional[Record]:
    """
    Retrieve a user by their unique identifier.

    Returns:
        Optional[Record]: User row if found, None otherwise
    """
    return await store.find_one("users", {"id": user_id})


async def get_user_by_email(store: RecordStore, email: str) -> Optional[Record]:
    return await store.find_one("users", {"email": email})


async def find_profile(store: RecordStore, identifier: str) -> Optional[Record]:
    """
    Look a profile up by its own id first, then by user_id.

    Both layouts exist in the profiles table: rows keyed by the auth user id
    and rows with a generated id that carry the user id in user_id.
    """
    if not identifier:
        return None
    profile = await store.find_one("profiles", {"id": identifier})
    if profile is None:
        profile = await store.find_one("profiles", {"user_id": identifier})
    return profile


def canonical_user_id(profile: Record) -> str:
    return profile.get("user_id") or profile["id"]


async def resolve_user_id(store: RecordStore, identifier: str) -> str:
    """
    Map a user id or profile id onto the canonical user id.

    Raises:
        NotFoundError: If neither a profile nor a user matches.
    """
    profile = await find_profile(store, identifier)
    if profile is not None:
        return canonical_user_id(profile)
    if await get_user_by_id(store, identifier) is not None:
        return identifier
    raise NotFoundError("User not found")


async def ensure_profile(store: RecordStore, user: Record) -> Optional[Record]:
    """
    Create the user's profile if it is missing. Best-effort: a failed insert
    is logged and None is returned.
    """
    profile = await find_profile(store, user["id"])
    if profile is not None:
        return profile
    try:
        return await store.create("profiles", {
            "id": user["id"],
            "user_id": user["id"],
            "full_name": user.get("display_name") or "",
            "email": user.get("email") or "",
            "phone": user.get("phone") or "",
        })
    except Exception:
        logger.exception(f"Could not create profile for user {user['id']}")
        return None


async def register_user(
    store: RecordStore,
    user_id: str,
    display_name: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> Record:
    """
    Create the user row for a freshly signed-up identity, its profile, and a
    welcome notification.

    Raises:
        ValidationError: If the display name is blank.
        ConflictError: If the user or the email is already registered.
    """
    if not display_name or not display_name.strip():
        raise ValidationError("display_name is required")
    if await get_user_by_id(store, user_id) is not None:
        raise ConflictError("User is already registered")
    if email and await get_user_by_email(store, email) is not None:
        raise ConflictError("Email already has an account. Please sign in or reset your password.")

    user = await store.create("users", {
        "id": user_id,
        "display_name": display_name.strip(),
        "email": email,
        "phone": phone,
    })
    await ensure_profile(store, user)
    await create_welcome_notification(store, user_id, user["display_name"])
    logger.info(f"Registered user {user_id}")
    return user


async def search_users(store: RecordStore, term: str, exclude_user_id: str) -> List[UserSummary]:
    """
    Find users whose name or email contains `term`, ignoring case.

    Profiles are searched first; users without a profile are matched on
    display_name and email. Every hit is reported under its canonical user
    id, the caller is excluded, and at most `user_search_limit` results are
    returned ordered by name.
    """
    term = (term or "").strip()
    if not term:
        return []

    limit = settings.user_search_limit
    found: Dict[str, UserSummary] = {}

    profiles = await store.search("profiles", term, ["full_name", "email"], order_by="full_name", limit=limit + 1)
    for profile in profiles:
        uid = canonical_user_id(profile)
        if uid == exclude_user_id or uid in found:
            continue
        found[uid] = UserSummary(
            uid=uid,
            display_name=profile.get("full_name") or "Unknown User",
            email=profile.get("email") or "",
            phone=profile.get("phone") or "",
        )

    users = await store.search(
        "users", term, ["display_name", "email"], exclude={"id": exclude_user_id}, order_by="display_name", limit=limit
    )
    for user in users:
        if user["id"] in found:
            continue
        found[user["id"]] = UserSummary(
            uid=user["id"],
            display_name=user.get("display_name") or "Unknown User",
            email=user.get("email") or "",
            phone=user.get("phone") or "",
        )

    results = sorted(found.values(), key=lambda summary: summary.display_name.lower())
    return results[:limit]
