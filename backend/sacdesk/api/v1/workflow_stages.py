from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from sacdesk.api.deps import AuditDep, RegistryDep, require
from sacdesk.models import Resource, SystemLogAction, User
from sacdesk.schemas import ReorderRequest, WorkflowStageCreate, WorkflowStageRead, WorkflowStageUpdate

router = APIRouter()


@router.get("/", response_model=List[WorkflowStageRead])
async def list_workflow_stages(
    registry: RegistryDep,
    current_user: User = Depends(require(Resource.WORKFLOW_STAGES, "read")),
    include_inactive: bool = Query(False),
):
    """Stages in board order."""
    return await registry.list_stages(include_inactive=include_inactive)


@router.post("/", response_model=WorkflowStageRead, status_code=status.HTTP_201_CREATED)
async def create_workflow_stage(
    payload: WorkflowStageCreate,
    registry: RegistryDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.WORKFLOW_STAGES, "create")),
):
    stage = await registry.create_stage(payload.name, payload.color, payload.slug, created_by=current_user.id)
    await audit(
        SystemLogAction.CREATE,
        Resource.WORKFLOW_STAGES,
        stage.id,
        {"name": stage.name, "slug": stage.slug},
    )
    return stage


@router.patch("/{stage_id}", response_model=WorkflowStageRead)
async def update_workflow_stage(
    stage_id: UUID,
    payload: WorkflowStageUpdate,
    registry: RegistryDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.WORKFLOW_STAGES, "update")),
):
    stage = await registry.rename_or_recolor(stage_id, name=payload.name, color=payload.color)
    await audit(
        SystemLogAction.UPDATE,
        Resource.WORKFLOW_STAGES,
        stage_id,
        payload.model_dump(mode="json", exclude_unset=True),
    )
    return stage


@router.post("/{stage_id}/reorder", response_model=List[WorkflowStageRead])
async def reorder_workflow_stage(
    stage_id: UUID,
    payload: ReorderRequest,
    registry: RegistryDep,
    current_user: User = Depends(require(Resource.WORKFLOW_STAGES, "update")),
):
    return await registry.reorder(stage_id, payload.direction)


@router.post("/{stage_id}/activate", response_model=WorkflowStageRead)
async def activate_workflow_stage(
    stage_id: UUID,
    registry: RegistryDep,
    current_user: User = Depends(require(Resource.WORKFLOW_STAGES, "update")),
):
    return await registry.activate(stage_id)


@router.post("/{stage_id}/deactivate", response_model=WorkflowStageRead)
async def deactivate_workflow_stage(
    stage_id: UUID,
    registry: RegistryDep,
    current_user: User = Depends(require(Resource.WORKFLOW_STAGES, "update")),
):
    return await registry.deactivate(stage_id)


@router.delete("/{stage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workflow_stage(
    stage_id: UUID,
    registry: RegistryDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.WORKFLOW_STAGES, "delete")),
) -> None:
    await registry.delete_stage(stage_id)
    await audit(SystemLogAction.DELETE, Resource.WORKFLOW_STAGES, stage_id)
