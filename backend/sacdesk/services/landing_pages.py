"""
Landing pages and the public ticket intake behind them.

A landing page is an unauthenticated form. Submissions create (or reuse) a
client and open a ticket on behalf of the page's responsible user, who
becomes both creator and analyst.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional
from uuid import UUID

from sacdesk.core.exceptions import NotFound, ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import Client, LandingPage, Ticket, TicketHistoryAction, User
from sacdesk.services.clients import search_filter
from sacdesk.services.tickets import TicketLifecycle
from sacdesk.services.workflow_stages import generate_slug

logger = logging.getLogger(__name__)

CLIENT_LOOKUP_LIMIT = 10
MIN_LOOKUP_LENGTH = 2


class LandingPageService:
    def __init__(self, gateway: PersistenceGateway, lifecycle: TicketLifecycle):
        self.gateway = gateway
        self.lifecycle = lifecycle

    # === ADMINISTRATION ===

    async def list_pages(self) -> List[LandingPage]:
        return await self.gateway.select(LandingPage, order_by=[LandingPage.title])

    async def get_page(self, page_id: UUID) -> LandingPage:
        page = await self.gateway.get(LandingPage, page_id)
        if not page:
            raise NotFound("Landing page", page_id)
        return page

    async def _check_responsible(self, responsible_id: Optional[UUID]) -> None:
        if responsible_id is not None and not await self.gateway.get(User, responsible_id):
            raise NotFound("User", responsible_id)

    async def create_page(self, data: Mapping[str, Any], created_by: Optional[UUID] = None) -> LandingPage:
        values = dict(data)
        slug = generate_slug(values.get("slug") or "")
        if not slug:
            raise ValidationError("Landing page slug must contain letters or digits")
        if await self.gateway.count(LandingPage, LandingPage.slug == slug):
            raise ValidationError(f"A landing page with slug '{slug}' already exists")
        await self._check_responsible(values.get("responsible_id"))
        values["slug"] = slug
        page = await self.gateway.insert(LandingPage(**values, created_by=created_by))
        logger.info(f"Landing page created: {slug}")
        return page

    async def update_page(self, page_id: UUID, patch: Mapping[str, Any]) -> LandingPage:
        await self.get_page(page_id)
        values = {key: value for key, value in patch.items() if key != "slug"}
        if "responsible_id" in values:
            await self._check_responsible(values["responsible_id"])
        updated = await self.gateway.update(
            LandingPage,
            {**values, "updated_at": datetime.utcnow()},
            LandingPage.id == page_id,
        )
        if not updated:
            raise NotFound("Landing page", page_id)
        return updated[0]

    async def delete_page(self, page_id: UUID) -> None:
        if not await self.gateway.delete(LandingPage, LandingPage.id == page_id):
            raise NotFound("Landing page", page_id)

    # === PUBLIC ===

    async def get_public_page(self, slug: str) -> LandingPage:
        rows = await self.gateway.select(
            LandingPage,
            LandingPage.slug == slug,
            LandingPage.is_active == True,
            limit=1,
        )
        if not rows:
            raise NotFound("Landing page", slug)
        return rows[0]

    async def lookup_clients(self, term: str) -> List[Client]:
        """Active clients whose name or document contains ``term``."""
        if not term or len(term.strip()) < MIN_LOOKUP_LENGTH:
            return []
        return await self.gateway.select(
            Client,
            search_filter(term),
            Client.is_active == True,
            order_by=[Client.name],
            limit=CLIENT_LOOKUP_LIMIT,
        )

    async def submit(self, slug: str, company: Mapping[str, Any], ticket: Mapping[str, Any]) -> Ticket:
        """Open a ticket from the public form.

        Everything is validated before the first write, and a new client is
        inserted together with its ticket, so a rejected submission leaves no
        client behind. The public form shows no custom fields, so required
        ticket fields are not enforced here.
        """
        if not (company.get("name") or "").strip() or not (company.get("email") or "").strip():
            raise ValidationError("Company name and email are required")
        if not (ticket.get("title") or "").strip() or not (ticket.get("description") or "").strip():
            raise ValidationError("Ticket title and description are required")

        page = await self.get_public_page(slug)
        if not page.responsible_id:
            raise ValidationError("Landing page has no responsible user configured")

        new_client = None
        client_id = company.get("existing_client_id")
        if client_id:
            if not await self.gateway.get(Client, client_id):
                raise NotFound("Client", client_id)
        else:
            contact = company.get("contact_name")
            new_client = Client(
                name=company["name"].strip(),
                document=company.get("cnpj") or None,
                email=company.get("email"),
                phone=company.get("phone") or None,
                city=company.get("city") or None,
                state=company.get("state") or None,
                notes=f"Contact: {contact}" if contact else None,
                created_by=page.responsible_id,
            )

        created = await self.lifecycle.create(
            title=ticket["title"],
            description=ticket["description"],
            creator_id=page.responsible_id,
            priority=ticket.get("priority") or "medium",
            client_id=client_id,
            analyst_id=page.responsible_id,
            nf_number=ticket.get("nf_number"),
            history_action=TicketHistoryAction.CREATED_VIA_LANDING_PAGE,
            new_client=new_client,
            enforce_required=False,
        )
        logger.info(f"Ticket #{created.number} opened through landing page {slug}")
        return created
