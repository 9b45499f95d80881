from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Principal
from app.database import get_db
from app.dependencies import get_current_principal, get_optional_principal
from app.schemas import ProfileEnvelope
from app.services import profile_service, relation_service

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/{username}", response_model=ProfileEnvelope)
async def get_profile(
    username: str,
    principal: Principal | None = Depends(get_optional_principal),
    db: AsyncSession = Depends(get_db),
):
    return {"profile": await profile_service.get_profile(db, username, principal)}


@router.post("/{username}/follow", response_model=ProfileEnvelope)
async def follow(
    username: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return {"profile": await relation_service.follow(db, principal, username)}


@router.delete("/{username}/follow", response_model=ProfileEnvelope)
async def unfollow(
    username: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return {"profile": await relation_service.unfollow(db, principal, username)}
