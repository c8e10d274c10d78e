from fastapi import APIRouter
from app.api.v1.endpoints import auth, catalog, subject_lock, sessions, aar, notifications, admin

# ============================================================
# Main API v1 Router
# ============================================================

api_router = APIRouter()

# Include auth routes at /auth
api_router.include_router(
    auth.router,
    prefix="/auth"
)

# Departments, subjects and resources
api_router.include_router(
    catalog.router,
    prefix=""  # Routes define their own paths (/departments, /subjects, /resources)
)

# Declare subject, unlock request, lock status and progress
api_router.include_router(
    subject_lock.router,
    prefix=""
)

api_router.include_router(
    sessions.router,
    prefix="/sessions"
)

api_router.include_router(
    aar.router,
    prefix="/aar"
)

api_router.include_router(
    notifications.router,
    prefix=""  # Routes define own prefix (/notifications)
)

# Admin console, every route requires an administrator
api_router.include_router(
    admin.router,
    prefix="/admin"
)
