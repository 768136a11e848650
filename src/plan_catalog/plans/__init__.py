from .files import PlanFileStore
from .filters import ADMIN_SCOPE, PUBLIC_SCOPE, PlanFilters
from .models import Plan, PlanCreate, PlanStats, PlanUpdate
from .repository import PlanRepository
from .service import PlanDownload, PlanService

__all__ = [
    "ADMIN_SCOPE",
    "PUBLIC_SCOPE",
    "Plan",
    "PlanCreate",
    "PlanDownload",
    "PlanFileStore",
    "PlanFilters",
    "PlanRepository",
    "PlanService",
    "PlanStats",
    "PlanUpdate",
]
