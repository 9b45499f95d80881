from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Principal
from app.database import get_db
from app.dependencies import get_current_principal
from app.schemas import LoginRequest, NewUserRequest, UserEnvelope, UserUpdateRequest
from app.services import profile_service, user_service

router = APIRouter(tags=["users"])


@router.post("/users", status_code=201, response_model=UserEnvelope)
async def register(data: NewUserRequest, db: AsyncSession = Depends(get_db)):
    return {"user": await user_service.register(db, data.user)}


@router.post("/users/login", response_model=UserEnvelope)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    return {"user": await user_service.login(db, data.user)}


@router.get("/user", response_model=UserEnvelope)
async def current_user(principal: Principal = Depends(get_current_principal)):
    return {"user": user_service.user_to_dict(principal.user, principal.token)}


@router.put("/user", response_model=UserEnvelope)
async def update_current_user(
    data: UserUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    user = await profile_service.update_profile(db, principal, data.user)
    return {"user": user_service.user_to_dict(user, principal.token)}
