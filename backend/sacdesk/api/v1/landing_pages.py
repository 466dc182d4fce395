from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from sacdesk.api.deps import AuditDep, LandingPagesDep, require
from sacdesk.models import Resource, SystemLogAction, User
from sacdesk.schemas import LandingPageCreate, LandingPageRead, LandingPageUpdate

router = APIRouter()


@router.get("/", response_model=List[LandingPageRead])
async def list_landing_pages(
    pages: LandingPagesDep,
    current_user: User = Depends(require(Resource.LANDING_PAGES, "read")),
):
    return await pages.list_pages()


@router.post("/", response_model=LandingPageRead, status_code=status.HTTP_201_CREATED)
async def create_landing_page(
    payload: LandingPageCreate,
    pages: LandingPagesDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.LANDING_PAGES, "create")),
):
    page = await pages.create_page(payload.model_dump(), created_by=current_user.id)
    await audit(
        SystemLogAction.CREATE,
        Resource.LANDING_PAGES,
        page.id,
        {"slug": page.slug, "title": page.title},
    )
    return page


@router.get("/{page_id}", response_model=LandingPageRead)
async def get_landing_page(
    page_id: UUID,
    pages: LandingPagesDep,
    current_user: User = Depends(require(Resource.LANDING_PAGES, "read")),
):
    return await pages.get_page(page_id)


@router.patch("/{page_id}", response_model=LandingPageRead)
async def update_landing_page(
    page_id: UUID,
    payload: LandingPageUpdate,
    pages: LandingPagesDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.LANDING_PAGES, "update")),
):
    page = await pages.update_page(page_id, payload.model_dump(exclude_unset=True))
    await audit(
        SystemLogAction.UPDATE,
        Resource.LANDING_PAGES,
        page_id,
        payload.model_dump(mode="json", exclude_unset=True),
    )
    return page


@router.delete("/{page_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_landing_page(
    page_id: UUID,
    pages: LandingPagesDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.LANDING_PAGES, "delete")),
) -> None:
    await pages.delete_page(page_id)
    await audit(SystemLogAction.DELETE, Resource.LANDING_PAGES, page_id)
