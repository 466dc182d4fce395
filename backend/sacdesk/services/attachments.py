"""
Files attached to tickets.

Uploads are stored under the configured upload directory with a generated
name; the database row keeps the original name for downloads. Removal only
flags the row, and both upload and removal are logged in the ticket history.
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from fastapi.concurrency import run_in_threadpool

from sacdesk.core.config import settings
from sacdesk.core.exceptions import Forbidden, NotFound, ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import Ticket, TicketAttachment, TicketHistoryAction, User
from sacdesk.services.permissions import is_admin
from sacdesk.services.tickets import history_entry

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _megabytes(size: int) -> str:
    return f"{size / (1024 * 1024):.0f} MB"


class AttachmentStore:
    def __init__(
        self,
        gateway: PersistenceGateway,
        upload_dir: Optional[Path] = None,
        max_file_size: int = settings.MAX_ATTACHMENT_SIZE,
        max_total_size: int = settings.MAX_TICKET_ATTACHMENTS_SIZE,
    ):
        self.gateway = gateway
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.max_file_size = max_file_size
        self.max_total_size = max_total_size

    async def _ensure_ticket(self, ticket_id: UUID) -> None:
        if not await self.gateway.get(Ticket, ticket_id):
            raise NotFound("Ticket", ticket_id)

    async def _total_size(self, ticket_id: UUID) -> int:
        rows = await self.gateway.select(
            TicketAttachment,
            TicketAttachment.ticket_id == ticket_id,
            TicketAttachment.is_deleted == False,
            columns=["file_size"],
        )
        return sum(row["file_size"] for row in rows)

    async def upload(
        self,
        ticket_id: UUID,
        uploader_id: UUID,
        filename: Optional[str],
        content: bytes,
        content_type: Optional[str] = None,
    ) -> TicketAttachment:
        await self._ensure_ticket(ticket_id)
        size = len(content)
        if size == 0:
            raise ValidationError("File is empty")
        if size > self.max_file_size:
            raise ValidationError(f"File size exceeds maximum allowed size of {_megabytes(self.max_file_size)}")
        if await self._total_size(ticket_id) + size > self.max_total_size:
            raise ValidationError(
                f"Total file size exceeds maximum allowed size of {_megabytes(self.max_total_size)}"
            )

        original = Path(filename or "").name or "unknown"
        stored_name = f"{ticket_id}_{uuid4().hex}{Path(original).suffix}"
        path = self.upload_dir / stored_name
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        await run_in_threadpool(path.write_bytes, content)

        attachment = TicketAttachment(
            ticket_id=ticket_id,
            uploaded_by=uploader_id,
            original_filename=original,
            stored_name=stored_name,
            file_size=size,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
        )
        try:
            await self.gateway.insert(
                [
                    attachment,
                    history_entry(ticket_id, uploader_id, TicketHistoryAction.ATTACHMENT_ADDED, new_value=original),
                ]
            )
        except Exception:
            # The row was not written; do not keep its file either
            path.unlink(missing_ok=True)
            raise
        logger.info(f"Attachment {original} ({size} bytes) added to ticket {ticket_id}")
        return attachment

    async def list_attachments(self, ticket_id: UUID) -> List[TicketAttachment]:
        """Live attachments newest first."""
        await self._ensure_ticket(ticket_id)
        return await self.gateway.select(
            TicketAttachment,
            TicketAttachment.ticket_id == ticket_id,
            TicketAttachment.is_deleted == False,
            order_by=[TicketAttachment.created_at.desc()],
        )

    async def get_attachment(self, attachment_id: UUID) -> TicketAttachment:
        attachment = await self.gateway.get(TicketAttachment, attachment_id)
        if not attachment or attachment.is_deleted:
            raise NotFound("Attachment", attachment_id)
        return attachment

    async def open_file(self, attachment_id: UUID) -> Tuple[TicketAttachment, Path]:
        attachment = await self.get_attachment(attachment_id)
        path = self.upload_dir / attachment.stored_name
        if not path.exists():
            logger.warning(f"Attachment {attachment_id} has no file at {path}")
            raise NotFound("File for attachment", attachment_id)
        return attachment, path

    async def remove(self, attachment_id: UUID, user: User) -> None:
        """Flag an attachment as removed. Only its uploader or an admin may do it."""
        attachment = await self.get_attachment(attachment_id)
        if attachment.uploaded_by != user.id and not is_admin(user):
            raise Forbidden("You can only delete your own attachments")

        updated = await self.gateway.update(
            TicketAttachment,
            {"is_deleted": True, "deleted_at": datetime.utcnow()},
            TicketAttachment.id == attachment_id,
            TicketAttachment.is_deleted == False,
            with_rows=[
                history_entry(
                    attachment.ticket_id,
                    user.id,
                    TicketHistoryAction.ATTACHMENT_REMOVED,
                    old_value=attachment.original_filename,
                )
            ],
        )
        if not updated:
            raise NotFound("Attachment", attachment_id)
        logger.info(f"Attachment {attachment.original_filename} removed from ticket {attachment.ticket_id}")
