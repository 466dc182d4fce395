from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, status

from sacdesk.api.deps import CurrentUser, SystemLogBookDep, client_ip
from sacdesk.core.security import (
    create_access_token,
    create_refresh_token,
    verify_password,
    verify_token,
)
from sacdesk.db import GatewayDep
from sacdesk.models import Resource, SystemLogAction, User
from sacdesk.schemas import RefreshTokenRequest, TokenPair, UserLogin, UserRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=TokenPair,
    summary="Login and obtain tokens",
)
async def login(payload: UserLogin, request: Request, gateway: GatewayDep, logs: SystemLogBookDep) -> TokenPair:
    email = payload.email.lower()
    users = await gateway.select(User, User.email == email, limit=1)
    user = users[0] if users else None
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.info(f"Failed login for {email}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect email or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive",
        )

    await logs.record(SystemLogAction.LOGIN, Resource.USERS, user.id, user_id=user.id, ip_address=client_ip(request))
    return TokenPair(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )


@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh access token",
)
def refresh_tokens(payload: RefreshTokenRequest) -> TokenPair:
    try:
        refresh_payload = verify_token(payload.refresh_token, token_type="refresh")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        ) from None

    user_id = refresh_payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token payload",
        )

    return TokenPair(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )


@router.get("/me", response_model=UserRead, summary="Current user")
async def read_me(current_user: CurrentUser) -> User:
    return current_user
