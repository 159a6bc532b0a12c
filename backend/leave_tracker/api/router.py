from fastapi import APIRouter

from leave_tracker.api.admin import admin_router
from leave_tracker.api.employees import employees_router
from leave_tracker.api.leaves import leaves_router
from leave_tracker.api.manager import manager_router
from leave_tracker.api.profile import profile_router

api_router = APIRouter()
api_router.include_router(leaves_router)
api_router.include_router(manager_router)
api_router.include_router(admin_router)
api_router.include_router(profile_router)
api_router.include_router(employees_router)
