"""Role based access checks against the permissions table."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status

from sacdesk.core.exceptions import NotFound, ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import Permission, Resource, Role, User

logger = logging.getLogger(__name__)

ACTIONS = ("create", "read", "update", "delete")

# role -> resource -> granted actions as "crud" letters
DEFAULT_PERMISSIONS = {
    Role.SUPERVISOR: {
        Resource.TICKETS: "crud",
        Resource.CLIENTS: "cru",
        Resource.REPORTS: "r",
        Resource.USERS: "r",
        Resource.CUSTOM_FIELDS: "r",
        Resource.WORKFLOW_STAGES: "r",
        Resource.LANDING_PAGES: "r",
    },
    Role.ANALYST: {
        Resource.TICKETS: "cru",
        Resource.CLIENTS: "cru",
        Resource.REPORTS: "r",
        Resource.CUSTOM_FIELDS: "r",
        Resource.WORKFLOW_STAGES: "r",
    },
    Role.USER: {
        Resource.TICKETS: "cr",
        Resource.CLIENTS: "r",
        Resource.CUSTOM_FIELDS: "r",
        Resource.WORKFLOW_STAGES: "r",
    },
}


def is_admin(user: User) -> bool:
    return user.role == Role.ADMIN


def is_admin_or_supervisor(user: User) -> bool:
    """Staff allowed to see internal comments and manage other people's tickets."""
    return user.role in (Role.ADMIN, Role.SUPERVISOR)


async def has_permission(gateway: PersistenceGateway, user: User, resource: str, action: str) -> bool:
    if action not in ACTIONS:
        raise ValueError(f"Unknown permission action: {action}")
    if is_admin(user):
        return True
    rows = await gateway.select(
        Permission,
        Permission.role == user.role,
        Permission.resource == resource,
        limit=1,
    )
    return bool(rows) and getattr(rows[0], f"can_{action}")


async def ensure_permission(gateway: PersistenceGateway, user: User, resource: str, action: str) -> None:
    if not await has_permission(gateway, user, resource, action):
        logger.warning(f"Permission denied: {user.email} {action} {resource}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not allowed to {action} {resource}",
        )


async def list_permissions(gateway: PersistenceGateway, role: Optional[str] = None) -> List[Permission]:
    filters = [Permission.role == role] if role else []
    return await gateway.select(Permission, *filters, order_by=[Permission.role, Permission.resource])


async def create_permission(
    gateway: PersistenceGateway,
    role: str,
    resource: str,
    grants: dict,
) -> Permission:
    if role not in Role.ALL:
        raise ValidationError(f"Role must be one of {', '.join(Role.ALL)}")
    if resource not in Resource.ALL:
        raise ValidationError(f"Resource must be one of {', '.join(Resource.ALL)}")
    if await gateway.count(Permission, Permission.role == role, Permission.resource == resource):
        raise ValidationError(f"Permission for {role} on {resource} already exists")
    flags = {f"can_{action}": bool(grants.get(f"can_{action}")) for action in ACTIONS}
    return await gateway.insert(Permission(role=role, resource=resource, **flags))


async def update_permission(gateway: PersistenceGateway, permission_id: UUID, grants: dict) -> Permission:
    patch = {f"can_{action}": grants[f"can_{action}"] for action in ACTIONS if grants.get(f"can_{action}") is not None}
    if not patch:
        permission = await gateway.get(Permission, permission_id)
        if not permission:
            raise NotFound("Permission", permission_id)
        return permission
    updated = await gateway.update(Permission, patch, Permission.id == permission_id)
    if not updated:
        raise NotFound("Permission", permission_id)
    logger.info(f"Permission {updated[0].role}/{updated[0].resource} updated: {patch}")
    return updated[0]
