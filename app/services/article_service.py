"""
Article service: slug lookup and the per-viewer article view.

Design notes
------------
- Article authoring lives elsewhere; this module only reads articles.
- The viewer-independent part of the view (content, tags, bookmark
  count) goes through the Redis cache-aside layer.  Writers that change
  any of it (bookmark/unbookmark) call ``cache.invalidate_article`` and
  build their response with ``use_cache=False``, so nothing read inside
  an uncommitted transaction is ever cached.
- The author profile and the ``bookmarked``/``following`` flags depend
  on who is asking and are always read from the database.
"""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth import Principal
from app.cache import article_key, cache
from app.config import settings
from app.models import Article, ArticleBookmark
from app.services.profile_service import is_following, profile_to_dict
from app.stores import BookmarkStore, UserStore


def _isoformat(value) -> str | None:
    return value.isoformat() if value else None


def _article_to_dict(article: Article, bookmarks_count: int) -> dict:
    """Serialise the cacheable part of an article view."""
    return {
        "id": article.id,
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "body": article.body,
        "tagList": sorted(t.name for t in article.tags),
        "createdAt": _isoformat(article.created_at),
        "updatedAt": _isoformat(article.updated_at or article.created_at),
        "bookmarksCount": bookmarks_count,
        "authorId": article.user_id,
    }


async def find_by_slug(db: AsyncSession, slug: str) -> Article | None:
    result = await db.execute(select(Article).where(Article.slug == slug))
    return result.scalar_one_or_none()


async def _load_article_data(db: AsyncSession, slug: str, use_cache: bool) -> dict | None:
    if use_cache:
        cached = await cache.get(article_key(slug))
        if cached:
            return cached

    q = select(Article).where(Article.slug == slug).options(selectinload(Article.tags))
    article = (await db.execute(q)).scalar_one_or_none()
    if article is None:
        return None

    count_q = (
        select(func.count())
        .select_from(ArticleBookmark)
        .where(ArticleBookmark.article_id == article.id)
    )
    bookmarks_count: int = (await db.execute(count_q)).scalar_one()

    data = _article_to_dict(article, bookmarks_count)
    if use_cache:
        await cache.set(article_key(slug), data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def get_article_view(
    db: AsyncSession, slug: str, principal: Principal | None, use_cache: bool = True
) -> dict | None:
    """
    Return the article view for *slug* as seen by *principal* (or an
    anonymous reader), or None when no such article exists.

    With ``use_cache=False`` the view is read from the session only and
    Redis is neither read nor written.  Writers pass this because their
    transaction has not committed yet.
    """
    data = await _load_article_data(db, slug, use_cache)
    if data is None:
        return None

    view = dict(data)
    article_id = view.pop("id")
    author = await UserStore(db).find_by_id(view.pop("authorId"))
    view["author"] = profile_to_dict(author, await is_following(db, principal, author))
    view["bookmarked"] = (
        principal is not None
        and await BookmarkStore(db).find(article_id, principal.id) is not None
    )
    return view
