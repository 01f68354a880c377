"""
User endpoints - identity of the caller as known to the rental engine.
Registration and login belong to the external auth provider.
"""

from fastapi import APIRouter

from lendoo.core.dependencies import CurrentUserId
from lendoo.db.repositories.user_repository import UserRepository
from lendoo.db.session import DbSession
from lendoo.schemas.user import UserResponse

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def me(session: DbSession, user_id: CurrentUserId):
    user = await UserRepository(session).get_by_id(user_id)
    return UserResponse.model_validate(user)
