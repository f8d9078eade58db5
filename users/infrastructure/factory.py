from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_database_session

from .repositories import UserRepository


async def get_user_repository(
    session: AsyncSession = Depends(get_database_session),
) -> UserRepository:
    """Provide the user directory bound to the request's session.

    Used by token resolution (`get_current_user`) and by the notification
    producers to look up recipients and actor names.
    """
    return UserRepository(session)
