from .user import User
from .procurement_request import ProcurementRequest, RequestStatus
from .approval import Approval, ApprovalStep, ApprovalHistory, StepStatus
from .workflow_template import ApprovalWorkflowTemplate, ApprovalStepTemplate
from .approver import Approver
from .approval_rule import ApprovalRule, ApprovalRuleApprover
from .brfq import BRFQ, RequestItem
from .supplier import Supplier
from .modification import ModificationRequest, ModificationHistory
from .pause import PauseReason, PauseAction
from .award import Award, AwardStatus, AwardWinner, AwardApprovalHistory, AwardWorkflow

__all__ = [
    "User",
    "ProcurementRequest",
    "RequestStatus",
    "Approval",
    "ApprovalStep",
    "ApprovalHistory",
    "StepStatus",
    "ApprovalWorkflowTemplate",
    "ApprovalStepTemplate",
    "Approver",
    "ApprovalRule",
    "ApprovalRuleApprover",
    "BRFQ",
    "RequestItem",
    "Supplier",
    "ModificationRequest",
    "ModificationHistory",
    "PauseReason",
    "PauseAction",
    "Award",
    "AwardStatus",
    "AwardWinner",
    "AwardApprovalHistory",
    "AwardWorkflow",
]
