from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Principal
from app.database import get_db
from app.dependencies import get_current_principal, get_optional_principal
from app.exceptions import ArticleNotFoundError
from app.schemas import ArticleEnvelope
from app.services import article_service, relation_service

router = APIRouter(prefix="/articles", tags=["articles"])


@router.get("/{slug}", response_model=ArticleEnvelope)
async def get_article(
    slug: str,
    principal: Principal | None = Depends(get_optional_principal),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.get_article_view(db, slug, principal)
    if article is None:
        raise ArticleNotFoundError(slug)
    return {"article": article}


@router.post("/{slug}/bookmark", response_model=ArticleEnvelope)
async def bookmark_article(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await relation_service.bookmark(db, principal, slug)}


@router.delete("/{slug}/bookmark", response_model=ArticleEnvelope)
async def unbookmark_article(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await relation_service.unbookmark(db, principal, slug)}
