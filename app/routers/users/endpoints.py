import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from app.common import get_current_user, to_http_exception
from app.core.errors import SOSError
from app.core.record_store import RecordStore
from app.init_db import get_store
from app.schemas.users import UserCreate, UserResponse, UserSummary
from app.services.user_service import get_user_by_id, register_user, search_users

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/register", response_model=UserResponse, status_code=201)
async def register_user_api(
    request: UserCreate,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """
    Create the user and profile rows for the signed-in identity.

    Raises:
        HTTPException: 400 for a blank name, 409 if already registered
    """
    try:
        return await register_user(store, current_user["uid"], request.display_name, request.email, request.phone)
    except SOSError as e:
        raise to_http_exception(e)

@router.get("/me", response_model=UserResponse)
async def get_me_api(
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    user = await get_user_by_id(store, current_user["uid"])
    if user is None:
        raise HTTPException(status_code=404, detail="User not found in database")
    return user

@router.get("/search", response_model=List[UserSummary])
async def search_users_api(
    q: str = Query("", description="Name or email fragment"),
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """Find other users by name or email, for sending friend requests."""
    try:
        return await search_users(store, q, current_user["uid"])
    except SOSError as e:
        raise to_http_exception(e)
