"""API v1 routes."""

from fastapi import APIRouter

from brote.api.v1 import auth, health, logs, submissions, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(submissions.router, prefix="/submissions", tags=["submissions"])
router.include_router(logs.router, prefix="/logs", tags=["logs"])
