"""Report Tracker - API Routers"""
from .auth import router as auth_router
from .organizations import router as organizations_router
from .projects import router as projects_router
from .expectations import router as expectations_router
from .links import router as links_router
from .collected_data import router as collected_data_router

__all__ = [
    "auth_router",
    "organizations_router",
    "projects_router",
    "expectations_router",
    "links_router",
    "collected_data_router",
]
