from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sacdesk.api.deps import AuditDep, CurrentUser
from sacdesk.db import GatewayDep
from sacdesk.models import Resource, SystemLogAction, User
from sacdesk.schemas import PermissionCreate, PermissionRead, PermissionUpdate
from sacdesk.services import permissions as permission_service

router = APIRouter()


def admin_only(current_user: CurrentUser) -> User:
    if not permission_service.is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can manage permissions",
        )
    return current_user


@router.get("/", response_model=List[PermissionRead])
async def list_permissions(
    gateway: GatewayDep,
    current_user: User = Depends(admin_only),
    role: Optional[str] = Query(None),
):
    return await permission_service.list_permissions(gateway, role)


@router.post("/", response_model=PermissionRead, status_code=status.HTTP_201_CREATED)
async def create_permission(
    payload: PermissionCreate,
    gateway: GatewayDep,
    audit: AuditDep,
    current_user: User = Depends(admin_only),
):
    """Add a missing (role, resource) row; duplicates are rejected."""
    permission = await permission_service.create_permission(
        gateway,
        payload.role,
        payload.resource,
        payload.model_dump(exclude={"role", "resource"}),
    )
    await audit(SystemLogAction.CREATE, Resource.PERMISSIONS, permission.id, payload.model_dump(mode="json"))
    return permission


@router.patch("/{permission_id}", response_model=PermissionRead)
async def update_permission(
    permission_id: UUID,
    payload: PermissionUpdate,
    gateway: GatewayDep,
    audit: AuditDep,
    current_user: User = Depends(admin_only),
):
    permission = await permission_service.update_permission(gateway, permission_id, payload.model_dump(mode="json"))
    await audit(
        SystemLogAction.UPDATE,
        Resource.PERMISSIONS,
        permission_id,
        payload.model_dump(mode="json", exclude_none=True),
    )
    return permission
