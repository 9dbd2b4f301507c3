import pytest

from app.config import settings
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.services import user_service
from app.services.notification_service import get_notifications


@pytest.mark.asyncio
async def test_resolve_user_id_handles_both_profile_layouts(seeded_store):
    await seeded_store.create("users", {"id": "dave", "display_name": "Dave"})
    await seeded_store.create("profiles", {"id": "p-dave", "user_id": "dave", "full_name": "Dave"})
    await seeded_store.create("users", {"id": "erin", "display_name": "Erin"})

    assert await user_service.resolve_user_id(seeded_store, "alice") == "alice"
    assert await user_service.resolve_user_id(seeded_store, "p-dave") == "dave"
    assert await user_service.resolve_user_id(seeded_store, "dave") == "dave"
    # No profile at all, but the user row exists
    assert await user_service.resolve_user_id(seeded_store, "erin") == "erin"
    with pytest.raises(NotFoundError):
        await user_service.resolve_user_id(seeded_store, "nobody")


@pytest.mark.asyncio
async def test_register_user_creates_profile_and_welcome(store):
    user = await user_service.register_user(store, "zoe", "  Zoe Kapoor ", "zoe@example.com", "+91 1")

    assert user["display_name"] == "Zoe Kapoor"
    profile = await user_service.find_profile(store, "zoe")
    assert profile["full_name"] == "Zoe Kapoor"
    [welcome] = await get_notifications(store, "zoe")
    assert welcome["title"] == "Welcome to SOS!"


@pytest.mark.asyncio
async def test_register_user_rejects_duplicates_and_blank_names(seeded_store):
    with pytest.raises(ValidationError):
        await user_service.register_user(seeded_store, "new", "   ")
    with pytest.raises(ConflictError):
        await user_service.register_user(seeded_store, "alice", "Alice Again")
    with pytest.raises(ConflictError):
        await user_service.register_user(seeded_store, "new", "Someone", "bob@example.com")


@pytest.mark.asyncio
async def test_search_users_dedupes_excludes_and_sorts(seeded_store):
    await seeded_store.create("users", {"id": "dave", "display_name": "Aaron Bose", "email": "aaron@example.com"})

    results = await user_service.search_users(seeded_store, "EXAMPLE.com", "bob")

    assert [r.uid for r in results] == ["dave", "alice", "carol"]
    assert results[1].display_name == "Alice Rao"
    assert await user_service.search_users(seeded_store, "   ", "bob") == []


@pytest.mark.asyncio
async def test_search_users_reports_profile_hits_under_canonical_id(seeded_store):
    await seeded_store.create("users", {"id": "dave", "display_name": "Dave"})
    await seeded_store.create("profiles", {"id": "p-dave", "user_id": "dave", "full_name": "Dave Mitra"})

    [result] = await user_service.search_users(seeded_store, "mitra", "alice")
    assert result.uid == "dave"
    assert result.display_name == "Dave Mitra"


@pytest.mark.asyncio
async def test_search_users_limit_keeps_the_case_insensitive_first_names(seeded_store, monkeypatch):
    for uid, name in (("u-bravo", "Bravo Vega"), ("u-charlie", "Charlie Vega"), ("u-alpha", "alpha Vega")):
        await seeded_store.create("profiles", {"id": uid, "full_name": name})
    monkeypatch.setattr(settings, "user_search_limit", 1)

    [first] = await user_service.search_users(seeded_store, "vega", "nobody")

    assert first.uid == "u-alpha"
