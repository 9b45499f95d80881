from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthResolver, Principal
from app.database import get_db
from app.stores import UserStore


async def get_current_principal(
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """
    Resolve the caller from the ``Authorization: Token <jwt>`` header.

    Any failure raises an ``AuthenticationError`` subclass, which the app
    turns into a 401 before the route body runs.  The session is the same
    one the route receives (FastAPI caches ``get_db`` per request), so the
    principal's User is attached to it.
    """
    return await AuthResolver(UserStore(db)).resolve(authorization)


async def get_optional_principal(
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Principal | None:
    """Anonymous (None) without a header; still 401 on a bad one."""
    return await AuthResolver(UserStore(db)).try_resolve(authorization)
