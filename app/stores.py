"""
Storage abstractions over the async session.

``UserStore`` owns the canonical user records.  ``RelationStore`` is a
single keyed-pair store, subclassed once per relation kind; the composite
primary key of each relation table is what keeps ``save`` idempotent,
including under concurrent inserts of the same pair.

Stores flush but never commit; the transaction boundary belongs to the
``get_db`` dependency.
"""
import logging
from typing import ClassVar, Generic, TypeVar

from sqlalchemy import and_, delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ArticleBookmark, FollowRelation, User

logger = logging.getLogger(__name__)

# Dialects with a native "INSERT ... ON CONFLICT DO NOTHING".
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

# Unique index names (PostgreSQL) and column references (SQLite) that
# identify which user column a unique violation came from.
_UNIQUE_USER_CONSTRAINTS = {
    "ix_users_username": "username",
    "users.username": "username",
    "ix_users_email": "email",
    "users.email": "email",
}


class DuplicateValueError(Exception):
    """A unique user column rejected a write that passed validation."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"duplicate value for {field}")


def duplicate_user_field(exc: IntegrityError) -> str | None:
    """
    Name the user column behind a unique violation, or None.

    Only the first line of the driver message is inspected: it carries the
    constraint (PostgreSQL) or column (SQLite) name, while later DETAIL
    lines echo the rejected value.
    """
    lines = str(exc.orig).lower().splitlines()
    headline = lines[0] if lines else ""
    for marker, field in _UNIQUE_USER_CONSTRAINTS.items():
        if marker in headline:
            return field
    return None


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _find_one(self, clause) -> User | None:
        result = await self.db.execute(select(User).where(clause))
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: str) -> User | None:
        return await self._find_one(User.id == user_id)

    async def find_by_username(self, username: str) -> User | None:
        return await self._find_one(User.username == username)

    async def find_by_email(self, email: str) -> User | None:
        return await self._find_one(User.email == email)

    async def save(self, user: User) -> User:
        """
        Persist *user* (new or modified) and flush.

        A unique-constraint violation on username or email is re-raised as
        ``DuplicateValueError`` naming the column; anything else propagates.
        """
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            field = duplicate_user_field(exc)
            if field is None:
                raise
            raise DuplicateValueError(field) from exc
        return user


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------

RelationT = TypeVar("RelationT", FollowRelation, ArticleBookmark)


class RelationStore(Generic[RelationT]):
    """Set of ordered pairs backed by a two-column primary key table."""

    model: ClassVar[type]
    keys: ClassVar[tuple[str, str]]

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _match(self, first: str, second: str):
        return and_(
            getattr(self.model, self.keys[0]) == first,
            getattr(self.model, self.keys[1]) == second,
        )

    def _pair(self, relation: RelationT) -> tuple[str, str]:
        return getattr(relation, self.keys[0]), getattr(relation, self.keys[1])

    async def find(self, first: str, second: str) -> RelationT | None:
        result = await self.db.execute(select(self.model).where(self._match(first, second)))
        return result.scalar_one_or_none()

    async def save(self, relation: RelationT) -> bool:
        """
        Insert *relation* unless the pair already exists.

        Returns True when a row was written.  The existence check and the
        insert are a single statement where the dialect supports it, so
        two concurrent saves of one pair leave exactly one row.
        """
        first, second = self._pair(relation)
        insert = _UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is None:
            return await self._save_in_savepoint(relation, first, second)

        stmt = (
            insert(self.model.__table__)
            .values({self.keys[0]: first, self.keys[1]: second})
            .on_conflict_do_nothing(index_elements=list(self.keys))
        )
        result = await self.db.execute(stmt)
        created = result.rowcount == 1
        logger.debug("%s save %s/%s created=%s", self.model.__tablename__, first, second, created)
        return created

    async def _save_in_savepoint(self, relation: RelationT, first: str, second: str) -> bool:
        # Dialects without ON CONFLICT: a concurrent insert of the same pair
        # surfaces as IntegrityError, rolled back to the savepoint only.
        if await self.find(first, second) is not None:
            return False
        try:
            async with self.db.begin_nested():
                self.db.add(relation)
        except IntegrityError:
            logger.debug("%s save %s/%s lost a race", self.model.__tablename__, first, second)
            return False
        return True

    async def remove(self, relation: RelationT) -> None:
        first, second = self._pair(relation)
        await self.db.execute(delete(self.model).where(self._match(first, second)))
        await self.db.flush()


class FollowStore(RelationStore[FollowRelation]):
    model = FollowRelation
    keys = ("follower_id", "followee_id")


class BookmarkStore(RelationStore[ArticleBookmark]):
    model = ArticleBookmark
    keys = ("article_id", "user_id")
