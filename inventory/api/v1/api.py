"""API v1 router composition."""

from fastapi import APIRouter

from inventory.api.v1.endpoints import activity_logs, auth, users

api_router: APIRouter = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(activity_logs.router, prefix="/activity-logs", tags=["activity-logs"])
