"""
Profile service: partial, uniqueness-checked mutation of the caller's
own user record, plus the public profile view.

Validation runs over every submitted field before anything is written
and the resulting field -> messages map is raised as a whole, so a
rejected request never leaves a partial update behind.  A uniqueness
violation that slips past the lookups (two concurrent updates claiming
the same value) is caught at flush time and reported with the same
message the lookup would have produced.
"""
import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Principal
from app.config import settings
from app.exceptions import ProfileValidationError, UserNotFoundError
from app.models import User
from app.schemas import UserUpdate
from app.security import hash_password
from app.stores import DuplicateValueError, FollowStore, UserStore

logger = logging.getLogger(__name__)

INVALID_EMAIL = "should be an email"
DUPLICATE_EMAIL = "email already exist"
DUPLICATE_USERNAME = "username already exist"

_DUPLICATE_MESSAGES = {"email": DUPLICATE_EMAIL, "username": DUPLICATE_USERNAME}


def is_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


async def collect_user_errors(
    users: UserStore, fields: dict[str, str], owner_id: str | None = None
) -> dict[str, list[str]]:
    """
    Validate the email/username entries of *fields*.

    A value held by *owner_id* itself is not a collision; pass None when
    no record owns the submission yet (registration).
    """
    errors: dict[str, list[str]] = {}

    email = fields.get("email")
    if email is not None:
        if not is_email(email):
            errors.setdefault("email", []).append(INVALID_EMAIL)
        else:
            holder = await users.find_by_email(email)
            if holder is not None and holder.id != owner_id:
                errors.setdefault("email", []).append(DUPLICATE_EMAIL)

    username = fields.get("username")
    if username is not None:
        holder = await users.find_by_username(username)
        if holder is not None and holder.id != owner_id:
            errors.setdefault("username", []).append(DUPLICATE_USERNAME)

    return errors


async def save_user(users: UserStore, user: User) -> User:
    """Persist *user*, reporting a late unique violation as a field error."""
    try:
        return await users.save(user)
    except DuplicateValueError as exc:
        logger.info("Unique violation on %s for user %s", exc.field, user.id)
        raise ProfileValidationError({exc.field: [_DUPLICATE_MESSAGES[exc.field]]}) from exc


async def update_profile(db: AsyncSession, principal: Principal, patch: UserUpdate) -> User:
    """
    Apply the provided fields of *patch* to the caller's record.

    Raises ProfileValidationError with every failing field; on success the
    updated (flushed, uncommitted) User is returned.
    """
    users = UserStore(db)
    fields = patch.provided()

    errors = await collect_user_errors(users, fields, owner_id=principal.id)
    if errors:
        logger.info("Profile update rejected for user %s: %s", principal.id, sorted(errors))
        raise ProfileValidationError(errors)

    user = await users.find_by_id(principal.id)
    if user is None:
        raise UserNotFoundError()

    if "password" in fields:
        fields["password"] = hash_password(fields["password"])
    for field, value in fields.items():
        setattr(user, field, value)

    user = await save_user(users, user)
    logger.info("Profile updated for user %s (%s)", user.id, ", ".join(sorted(fields)) or "no fields")
    return user


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

def profile_to_dict(user: User, following: bool) -> dict:
    return {
        "username": user.username,
        "bio": user.bio,
        "image": user.image or settings.DEFAULT_IMAGE,
        "following": following,
    }


async def is_following(db: AsyncSession, principal: Principal | None, user: User) -> bool:
    if principal is None:
        return False
    return await FollowStore(db).find(principal.id, user.id) is not None


async def get_profile(db: AsyncSession, username: str, principal: Principal | None) -> dict:
    user = await UserStore(db).find_by_username(username)
    if user is None:
        raise UserNotFoundError(username)
    return profile_to_dict(user, await is_following(db, principal, user))
