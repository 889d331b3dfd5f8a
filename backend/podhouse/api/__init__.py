from .auth import router as auth_router
from .seats import router as seats_router
from .pods import router as pods_router
from .groups import router as groups_router
from .maintenance import router as maintenance_router

__all__ = ["auth_router", "seats_router", "pods_router", "groups_router", "maintenance_router"]
