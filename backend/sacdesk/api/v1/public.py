"""Unauthenticated endpoints behind the landing page forms. Rate limited per client address."""

import logging
from typing import List

from fastapi import APIRouter, Query, Request, status

from sacdesk.api.deps import LandingPagesDep
from sacdesk.core.config import settings
from sacdesk.core.limiter import limiter
from sacdesk.schemas import ClientMatch, LandingPagePublic, PublicSubmission, PublicSubmissionResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/landing-pages/{slug}", response_model=LandingPagePublic)
@limiter.limit(settings.PUBLIC_INTAKE_RATE_LIMIT)
async def get_public_landing_page(request: Request, slug: str, pages: LandingPagesDep):
    return await pages.get_public_page(slug)


@router.get("/landing-pages/{slug}/clients", response_model=List[ClientMatch])
@limiter.limit(settings.PUBLIC_INTAKE_RATE_LIMIT)
async def lookup_public_clients(
    request: Request,
    slug: str,
    pages: LandingPagesDep,
    q: str = Query("", max_length=100),
):
    """Existing companies matching a name or document fragment."""
    await pages.get_public_page(slug)
    return await pages.lookup_clients(q)


@router.post(
    "/landing-pages/{slug}/tickets",
    response_model=PublicSubmissionResult,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.PUBLIC_INTAKE_RATE_LIMIT)
async def submit_public_ticket(
    request: Request,
    slug: str,
    payload: PublicSubmission,
    pages: LandingPagesDep,
):
    ticket = await pages.submit(slug, payload.company.model_dump(), payload.ticket.model_dump())
    return PublicSubmissionResult(protocol=ticket.number)
