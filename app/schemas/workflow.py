from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Any, List, Optional
from datetime import datetime


# ------------------------------------------------------------
# Workflow template
# ------------------------------------------------------------

class StepTemplateIn(BaseModel):
    role: Optional[str] = None
    approver_name: Optional[str] = Field(default=None, alias="approverName")
    sla_duration: Optional[str] = Field(default=None, alias="slaDuration")
    condition: Optional[str] = None
    condition_type: Optional[str] = Field(default=None, alias="conditionType")
    condition_operator: Optional[str] = Field(default=None, alias="conditionOperator")
    condition_value: Optional[str] = Field(default=None, alias="conditionValue")
    is_required: bool = Field(default=False, alias="isRequired")

    model_config = ConfigDict(populate_by_name=True)


class WorkflowTemplateIn(BaseModel):
    steps: List[StepTemplateIn] = []
    default_sla: Optional[str] = Field(default=None, alias="defaultSla")
    allow_parallel: bool = Field(default=False, alias="allowParallel")
    send_reminders: bool = Field(default=False, alias="sendReminders")

    model_config = ConfigDict(populate_by_name=True)


class StepTemplateResponse(BaseModel):
    id: int
    order: int
    role: Optional[str] = None
    approver_name: Optional[str] = None
    sla_duration: Optional[str] = None
    condition: Optional[str] = None
    condition_type: Optional[str] = None
    condition_operator: Optional[str] = None
    condition_value: Optional[str] = None
    is_required: bool = False

    model_config = ConfigDict(from_attributes=True)


class WorkflowTemplateResponse(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    default_sla: Optional[str] = None
    allow_parallel: bool = False
    send_reminders: bool = False
    steps: List[StepTemplateResponse] = []

    model_config = ConfigDict(from_attributes=True)


# ------------------------------------------------------------
# Approvers
# ------------------------------------------------------------

class ApproverCreate(BaseModel):
    name: str
    email: EmailStr
    role: str


class ApproverResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    user_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ------------------------------------------------------------
# Approval rules (BRFQ events)
# ------------------------------------------------------------

class RuleApproverIn(BaseModel):
    approver_id: Optional[int] = Field(default=None, alias="approverId")
    role: Optional[str] = None
    email: Optional[str] = None
    order: Optional[int] = None
    is_parallel: bool = Field(default=False, alias="isParallel")

    model_config = ConfigDict(populate_by_name=True)


class ApprovalRuleCreate(BaseModel):
    name: str
    description: Optional[str] = None
    criteria: Optional[Any] = None
    sla_hours: Optional[int] = Field(default=None, alias="slaHours")
    escalation_email: Optional[str] = Field(default=None, alias="escalationEmail")
    auto_publish: bool = Field(default=False, alias="autoPublish")
    active: bool = True
    approvers: List[RuleApproverIn] = []

    model_config = ConfigDict(populate_by_name=True)


class ApprovalRuleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    criteria: Optional[Any] = None
    sla_hours: Optional[int] = Field(default=None, alias="slaHours")
    escalation_email: Optional[str] = Field(default=None, alias="escalationEmail")
    auto_publish: Optional[bool] = Field(default=None, alias="autoPublish")
    active: Optional[bool] = None
    approvers: Optional[List[RuleApproverIn]] = None

    model_config = ConfigDict(populate_by_name=True)


class RuleApproverResponse(BaseModel):
    id: int
    approver_id: Optional[int] = None
    role: Optional[str] = None
    email: Optional[str] = None
    order: int
    is_parallel: bool

    model_config = ConfigDict(from_attributes=True)


class ApprovalRuleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    criteria: Optional[Any] = None
    sla_hours: Optional[int] = None
    escalation_email: Optional[str] = None
    auto_publish: bool
    active: bool
    approvers: List[RuleApproverResponse] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
