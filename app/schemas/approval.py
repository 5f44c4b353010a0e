from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class ApprovalStepResponse(BaseModel):
    id: int
    order: int
    role: Optional[str] = None
    approver_name: Optional[str] = None
    status: str
    sla_duration: Optional[str] = None
    condition: Optional[str] = None
    is_required: bool = False
    comments: Optional[str] = None
    activated_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    decided_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ApprovalHistoryResponse(BaseModel):
    id: int
    step_id: int
    action: str
    actor: Optional[str] = None
    channel: str
    comments: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApprovalResponse(BaseModel):
    """Approval chain of one request. approval_id is None until first submit."""
    request_id: int
    approval_id: Optional[int] = None
    steps: List[ApprovalStepResponse] = []
    history: List[ApprovalHistoryResponse] = []


class VerifyDecision(BaseModel):
    """Email-link decision. ``decision`` may instead come from ``?action=``."""
    token: str
    decision: Optional[str] = None
    comments: Optional[str] = None


class DashboardAction(BaseModel):
    step_id: int = Field(alias="stepId")
    action: str
    comments: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
