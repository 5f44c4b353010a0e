from .auth import router as auth_router
from .health import router as health_router
from .requests import router as requests_router
from .approval import router as approval_router
from .administration import router as administration_router
from .approvers import router as approvers_router
from .brfq import router as brfq_router
from .awards import router as awards_router

__all__ = [
    "auth_router",
    "health_router",
    "requests_router",
    "approval_router",
    "administration_router",
    "approvers_router",
    "brfq_router",
    "awards_router",
]
