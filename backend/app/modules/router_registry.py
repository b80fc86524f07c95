"""Central router registry for module-oriented composition."""
from __future__ import annotations

from fastapi import FastAPI

from app.routers.admin import router as admin_router
from app.routers.auth import router as auth_router
from app.routers.notifications import router as notifications_router
from app.routers.professor import router as professor_router
from app.routers.student import router as student_router

ALL_ROUTERS = (
    auth_router,
    admin_router,
    student_router,
    professor_router,
    notifications_router,
)


def include_all_routers(app: FastAPI) -> None:
    for router in ALL_ROUTERS:
        app.include_router(router)
