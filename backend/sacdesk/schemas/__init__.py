from .activity import ActivityEntryRead, SystemLogRead, TaskRead
from .board import BoardCardRead, BoardColumnRead, BoardMove, BoardMoveResult, BoardNoticeRead
from .client import ClientCreate, ClientRead, ClientUpdate
from .custom_field import (
    CustomFieldCreate,
    CustomFieldRead,
    CustomFieldUpdate,
    CustomValuesPayload,
    FieldControl,
    ReorderRequest,
)
from .landing_page import (
    ClientMatch,
    LandingPageCreate,
    LandingPagePublic,
    LandingPageRead,
    LandingPageUpdate,
    PublicSubmission,
    PublicSubmissionResult,
)
from .permission import PermissionCreate, PermissionRead, PermissionUpdate
from .statistics import TicketStatistics
from .ticket import TicketCreate, TicketRead, TicketStageChange, TicketUpdate
from .ticket_comment import (
    TicketAttachmentRead,
    TicketCommentCreate,
    TicketCommentRead,
    TicketHistoryRead,
    TicketObserverCreate,
    TicketObserverRead,
)
from .user import RefreshTokenRequest, TokenPair, UserCreate, UserLogin, UserRead
from .workflow_stage import WorkflowStageCreate, WorkflowStageRead, WorkflowStageUpdate

__all__ = [
    "ActivityEntryRead",
    "BoardCardRead",
    "BoardColumnRead",
    "BoardMove",
    "BoardMoveResult",
    "BoardNoticeRead",
    "ClientCreate",
    "ClientMatch",
    "ClientRead",
    "ClientUpdate",
    "CustomFieldCreate",
    "CustomFieldRead",
    "CustomFieldUpdate",
    "CustomValuesPayload",
    "FieldControl",
    "LandingPageCreate",
    "LandingPagePublic",
    "LandingPageRead",
    "LandingPageUpdate",
    "PermissionCreate",
    "PermissionRead",
    "PermissionUpdate",
    "PublicSubmission",
    "PublicSubmissionResult",
    "RefreshTokenRequest",
    "SystemLogRead",
    "TaskRead",
    "ReorderRequest",
    "TicketAttachmentRead",
    "TicketCommentCreate",
    "TicketCommentRead",
    "TicketCreate",
    "TicketHistoryRead",
    "TicketObserverCreate",
    "TicketObserverRead",
    "TicketRead",
    "TicketStageChange",
    "TicketStatistics",
    "TicketUpdate",
    "TokenPair",
    "UserCreate",
    "UserLogin",
    "UserRead",
    "WorkflowStageCreate",
    "WorkflowStageRead",
    "WorkflowStageUpdate",
]
