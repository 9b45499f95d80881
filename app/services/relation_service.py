"""
Relation service: follow/unfollow a user and bookmark/unbookmark an
article on behalf of the authenticated caller.

Both relation kinds go through ``RelationStore`` so a repeated insert
never creates a second row.  The two removals differ:
unfollowing a user you do not follow is a not-found error, while
removing a bookmark that does not exist succeeds silently.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Principal
from app.cache import cache
from app.exceptions import ArticleNotFoundError, RelationNotFoundError, UserNotFoundError
from app.models import ArticleBookmark, FollowRelation, User
from app.services import article_service
from app.services.profile_service import profile_to_dict
from app.stores import BookmarkStore, FollowStore, UserStore

logger = logging.getLogger(__name__)


async def _resolve_target(db: AsyncSession, username: str) -> User:
    target = await UserStore(db).find_by_username(username)
    if target is None:
        raise UserNotFoundError(username)
    return target


# ---------------------------------------------------------------------------
# Follow
# ---------------------------------------------------------------------------

async def follow(db: AsyncSession, principal: Principal, username: str) -> dict:
    """Follow *username*; returns the target's profile as seen by the caller."""
    target = await _resolve_target(db, username)
    created = await FollowStore(db).save(
        FollowRelation(follower_id=principal.id, followee_id=target.id)
    )
    logger.info("User %s follows %s (new=%s)", principal.id, target.id, created)
    return profile_to_dict(target, following=True)


async def unfollow(db: AsyncSession, principal: Principal, username: str) -> dict:
    """
    Stop following *username*.

    Raises RelationNotFoundError when the caller was not following the
    target; the store is left untouched in that case.
    """
    target = await _resolve_target(db, username)
    store = FollowStore(db)
    relation = await store.find(principal.id, target.id)
    if relation is None:
        raise RelationNotFoundError()
    await store.remove(relation)
    logger.info("User %s unfollowed %s", principal.id, target.id)
    return profile_to_dict(target, following=False)


# ---------------------------------------------------------------------------
# Bookmark
# ---------------------------------------------------------------------------

async def _article_view(db: AsyncSession, slug: str, principal: Principal) -> dict:
    view = await article_service.get_article_view(db, slug, principal, use_cache=False)
    if view is None:
        raise ArticleNotFoundError(slug)
    return view


async def bookmark(db: AsyncSession, principal: Principal, slug: str) -> dict:
    article = await article_service.find_by_slug(db, slug)
    if article is None:
        raise ArticleNotFoundError(slug)

    created = await BookmarkStore(db).save(
        ArticleBookmark(article_id=article.id, user_id=principal.id)
    )
    if created:
        await cache.invalidate_article(slug)
    logger.info("User %s bookmarked article %s (new=%s)", principal.id, article.id, created)
    return await _article_view(db, slug, principal)


async def unbookmark(db: AsyncSession, principal: Principal, slug: str) -> dict:
    article = await article_service.find_by_slug(db, slug)
    if article is None:
        raise ArticleNotFoundError(slug)

    store = BookmarkStore(db)
    existing = await store.find(article.id, principal.id)
    if existing is not None:
        await store.remove(existing)
        await cache.invalidate_article(slug)
        logger.info("User %s removed bookmark on article %s", principal.id, article.id)
    return await _article_view(db, slug, principal)
