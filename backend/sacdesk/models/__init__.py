from .client import Client
from .custom_field import CustomField, CustomFieldEntity, CustomFieldType, CustomFieldValue
from .landing_page import LandingPage
from .number_sequence import NumberSequence
from .permission import Permission, Resource
from .system_log import SystemLog, SystemLogAction
from .ticket import Ticket, TicketPriority
from .ticket_attachment import TicketAttachment
from .ticket_comment import TicketComment
from .ticket_history import TicketHistory, TicketHistoryAction
from .ticket_observer import TicketObserver
from .user import Role, User
from .workflow_stage import WorkflowStage

__all__ = [
    "Client",
    "CustomField",
    "CustomFieldEntity",
    "CustomFieldType",
    "CustomFieldValue",
    "LandingPage",
    "NumberSequence",
    "Permission",
    "Resource",
    "Role",
    "SystemLog",
    "SystemLogAction",
    "Ticket",
    "TicketAttachment",
    "TicketComment",
    "TicketHistory",
    "TicketHistoryAction",
    "TicketObserver",
    "TicketPriority",
    "User",
    "WorkflowStage",
]
