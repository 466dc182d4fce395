from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from sacdesk.core.cache import get_cache
from sacdesk.core.config import settings
from sacdesk.core.security import verify_token
from sacdesk.db import GatewayDep
from sacdesk.models import User
from sacdesk.services.attachments import AttachmentStore
from sacdesk.services.clients import ClientDirectory
from sacdesk.services.custom_fields import CustomFieldEngine
from sacdesk.services.landing_pages import LandingPageService
from sacdesk.services.permissions import ensure_permission
from sacdesk.services.system_logs import AuditTrail, SystemLogBook
from sacdesk.services.tickets import TicketLifecycle
from sacdesk.services.workflow_stages import WorkflowStageRegistry

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


async def get_current_user(
    gateway: GatewayDep,
    token: str = Depends(oauth2_scheme),
) -> User:
    try:
        payload = verify_token(token, token_type="access")
        user_id = payload.get("sub")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await gateway.get(User, UUID(user_id))
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Inactive or missing user",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require(resource: str, action: str):
    """Dependency that rejects users without ``action`` on ``resource``."""

    async def dependency(gateway: GatewayDep, current_user: CurrentUser) -> User:
        await ensure_permission(gateway, current_user, resource, action)
        return current_user

    return dependency


def get_registry(gateway: GatewayDep) -> WorkflowStageRegistry:
    return WorkflowStageRegistry(gateway, cache=get_cache())


def get_field_engine(gateway: GatewayDep) -> CustomFieldEngine:
    return CustomFieldEngine(gateway)


def get_lifecycle(
    gateway: GatewayDep,
    registry: WorkflowStageRegistry = Depends(get_registry),
    fields: CustomFieldEngine = Depends(get_field_engine),
) -> TicketLifecycle:
    return TicketLifecycle(gateway, registry, fields)


def get_client_directory(
    gateway: GatewayDep,
    fields: CustomFieldEngine = Depends(get_field_engine),
) -> ClientDirectory:
    return ClientDirectory(gateway, fields)


def get_landing_pages(
    gateway: GatewayDep,
    lifecycle: TicketLifecycle = Depends(get_lifecycle),
) -> LandingPageService:
    return LandingPageService(gateway, lifecycle)


RegistryDep = Annotated[WorkflowStageRegistry, Depends(get_registry)]
FieldEngineDep = Annotated[CustomFieldEngine, Depends(get_field_engine)]
LifecycleDep = Annotated[TicketLifecycle, Depends(get_lifecycle)]
ClientDirectoryDep = Annotated[ClientDirectory, Depends(get_client_directory)]
LandingPagesDep = Annotated[LandingPageService, Depends(get_landing_pages)]


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def get_attachment_store(gateway: GatewayDep) -> AttachmentStore:
    return AttachmentStore(gateway)


def get_system_log_book(gateway: GatewayDep) -> SystemLogBook:
    return SystemLogBook(gateway)


def get_audit_trail(
    request: Request,
    current_user: CurrentUser,
    book: SystemLogBook = Depends(get_system_log_book),
) -> AuditTrail:
    return AuditTrail(book, current_user.id, client_ip(request))


AttachmentStoreDep = Annotated[AttachmentStore, Depends(get_attachment_store)]
SystemLogBookDep = Annotated[SystemLogBook, Depends(get_system_log_book)]
AuditDep = Annotated[AuditTrail, Depends(get_audit_trail)]
