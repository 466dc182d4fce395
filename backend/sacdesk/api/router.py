from fastapi import APIRouter

from sacdesk.api.v1 import (
    activity,
    auth,
    board,
    clients,
    custom_fields,
    health,
    landing_pages,
    permissions,
    public,
    statistics,
    ticket_attachments,
    tickets,
    users,
    workflow_stages,
)


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
api_router.include_router(ticket_attachments.router, tags=["ticket-attachments"])
api_router.include_router(activity.router)
api_router.include_router(board.router, prefix="/board", tags=["board"])
api_router.include_router(workflow_stages.router, prefix="/workflow-stages", tags=["workflow-stages"])
api_router.include_router(custom_fields.router, prefix="/custom-fields", tags=["custom-fields"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(statistics.router, prefix="/statistics", tags=["statistics"])
api_router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
api_router.include_router(landing_pages.router, prefix="/landing-pages", tags=["landing-pages"])
api_router.include_router(public.router, prefix="/public", tags=["public"])
