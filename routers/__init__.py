# routers/__init__.py

from fastapi import APIRouter

# Auth + handoff
from .auth import router as auth_router
from .activate import router as activate_router

# Manager / superadmin surfaces
from .admin_clients import router as admin_clients_router
from .superadmin_organizations import router as superadmin_organizations_router
from .superadmin_managers import router as superadmin_managers_router

# Homeowner feeds + scheduled jobs
from .calendar import router as calendar_router
from .alerts import router as alerts_router

from .health import router as health_router


api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(activate_router)

api_router.include_router(admin_clients_router)
api_router.include_router(superadmin_organizations_router)
api_router.include_router(superadmin_managers_router)

api_router.include_router(calendar_router)
api_router.include_router(alerts_router)

api_router.include_router(health_router)

__all__ = ["api_router"]
