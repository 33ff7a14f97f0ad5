#router package initializer
#Each imported router is renamed
from .auth import router as auth_router
from .users import router as users_router
from .admin import router as admin_router
from .patients import router as patients_router
from .vhv import router as vhv_router
from .tasks import router as tasks_router
from .intakes import router as intakes_router
from .reviews import router as reviews_router
from .emergency import router as emergency_router
from .patient_portal import router as patient_portal_router
from .dashboards import router as dashboards_router

#defines what is publicly exposed when someone imports this package
__all__ = [
    "auth_router",
    "users_router",
    "admin_router",
    "patients_router",
    "vhv_router",
    "tasks_router",
    "intakes_router",
    "reviews_router",
    "emergency_router",
    "patient_portal_router",
    "dashboards_router",
]
