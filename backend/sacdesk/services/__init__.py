from .clients import ClientDirectory
from .custom_fields import CustomFieldEngine
from .kanban import DragState, KanbanBoard
from .landing_pages import LandingPageService
from .tickets import TicketLifecycle
from .workflow_stages import WorkflowStageRegistry

__all__ = [
    "ClientDirectory",
    "CustomFieldEngine",
    "DragState",
    "KanbanBoard",
    "LandingPageService",
    "TicketLifecycle",
    "WorkflowStageRegistry",
]
