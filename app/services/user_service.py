"""
User service: registration, login and the current-user payload.

Registration applies the same email/username checks as a profile update
(with no owning record), so both report errors in one shape.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import InvalidCredentialsError, ProfileValidationError
from app.models import User
from app.schemas import LoginUser, NewUser
from app.security import hash_password, token_service, verify_password
from app.services.profile_service import collect_user_errors, save_user
from app.stores import UserStore

logger = logging.getLogger(__name__)


def user_to_dict(user: User, token: str) -> dict:
    """Serialise *user* as the authenticated user's own view."""
    return {
        "email": user.email,
        "token": token,
        "username": user.username,
        "bio": user.bio,
        "image": user.image or settings.DEFAULT_IMAGE,
    }


async def register(db: AsyncSession, data: NewUser) -> dict:
    users = UserStore(db)
    errors = await collect_user_errors(
        users, {"email": data.email, "username": data.username}
    )
    if errors:
        raise ProfileValidationError(errors)

    user = User(
        username=data.username,
        email=data.email,
        password=hash_password(data.password),
        bio="",
        image="",
    )
    user = await save_user(users, user)
    logger.info("Registered user %s", user.id)
    return user_to_dict(user, token_service.create_token(user.id))


async def login(db: AsyncSession, data: LoginUser) -> dict:
    user = await UserStore(db).find_by_email(data.email)
    if user is None or not verify_password(data.password, user.password):
        raise InvalidCredentialsError()
    return user_to_dict(user, token_service.create_token(user.id))
