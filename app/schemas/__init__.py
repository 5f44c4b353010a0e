from .approval import ApprovalStepResponse, ApprovalResponse, VerifyDecision, DashboardAction
from .procurement_request import RequestCreate, RequestUpdate, RequestResponse

__all__ = [
    "ApprovalStepResponse", "ApprovalResponse", "VerifyDecision", "DashboardAction",
    "RequestCreate", "RequestUpdate", "RequestResponse",
]
