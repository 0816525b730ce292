from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.database.postgres import get_db_session
from app.models.user import User
from app.core.security import verify_token
from app.core.exceptions import UnauthorizedAccessException, InvalidTokenException

security = HTTPBearer()

async def _get_user_from_token(token: str, db: AsyncSession) -> User:
    """
    Verify a bearer token issued by the session layer and load its user.
    """
    if not token:
        raise InvalidTokenException(detail="Token not provided")

    payload = verify_token(token)
    user_id = payload.get("user_id")
    if user_id is None:
        raise InvalidTokenException()
    try:
        user_id = UUID(str(user_id))
    except ValueError:
        raise InvalidTokenException()

    result = await db.execute(select(User).filter(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise UnauthorizedAccessException(detail="User not found")

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db_session)
) -> User:
    """
    Dependency for HTTP routes to get the current user from a Bearer token.
    """
    return await _get_user_from_token(credentials.credentials, db)
