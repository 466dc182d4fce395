from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from sacdesk.core.security import get_password_hash
from sacdesk.api.deps import AuditDep, require
from sacdesk.db import GatewayDep
from sacdesk.models import Resource, Role, SystemLogAction, User
from sacdesk.schemas import UserCreate, UserRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[UserRead], summary="List users")
async def list_users(
    gateway: GatewayDep,
    current_user: User = Depends(require(Resource.USERS, "read")),
) -> List[User]:
    return await gateway.select(User, order_by=[User.created_at.asc()])


@router.post(
    "/",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(
    payload: UserCreate,
    gateway: GatewayDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.USERS, "create")),
) -> User:
    email = payload.email.lower()
    if payload.role not in Role.ALL:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Role must be one of {', '.join(Role.ALL)}",
        )
    if await gateway.count(User, User.email == email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already registered",
        )

    user = await gateway.insert(
        User(
            email=email,
            full_name=payload.full_name,
            phone=payload.phone,
            department=payload.department,
            avatar_url=payload.avatar_url,
            role=payload.role,
            hashed_password=get_password_hash(payload.password),
        )
    )
    logger.info(f"User created: {email} ({payload.role})")
    await audit(SystemLogAction.CREATE, Resource.USERS, user.id, {"email": email, "role": payload.role})
    return user
