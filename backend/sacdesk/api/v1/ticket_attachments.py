from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from fastapi.responses import FileResponse

from sacdesk.api.deps import AttachmentStoreDep, CurrentUser, require
from sacdesk.models import Resource, User
from sacdesk.schemas import TicketAttachmentRead

router = APIRouter()

can_read = require(Resource.TICKETS, "read")


@router.post(
    "/tickets/{ticket_id}/attachments",
    response_model=TicketAttachmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload attachment to ticket",
)
async def upload_ticket_attachment(
    ticket_id: UUID,
    store: AttachmentStoreDep,
    current_user: User = Depends(can_read),
    file: UploadFile = File(...),
):
    content = await file.read()
    return await store.upload(ticket_id, current_user.id, file.filename, content, file.content_type)


@router.get(
    "/tickets/{ticket_id}/attachments",
    response_model=List[TicketAttachmentRead],
    summary="List ticket attachments",
)
async def list_ticket_attachments(
    ticket_id: UUID,
    store: AttachmentStoreDep,
    current_user: User = Depends(can_read),
):
    return await store.list_attachments(ticket_id)


@router.get(
    "/tickets/attachments/{attachment_id}/download",
    summary="Download ticket attachment",
)
async def download_ticket_attachment(
    attachment_id: UUID,
    store: AttachmentStoreDep,
    current_user: User = Depends(can_read),
):
    attachment, path = await store.open_file(attachment_id)
    return FileResponse(
        path=str(path),
        filename=attachment.original_filename,
        media_type=attachment.content_type,
    )


@router.delete(
    "/tickets/attachments/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_ticket_attachment(
    attachment_id: UUID,
    store: AttachmentStoreDep,
    current_user: CurrentUser,
):
    """Only the uploader or an admin may remove an attachment."""
    await store.remove(attachment_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
