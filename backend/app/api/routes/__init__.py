from fastapi import APIRouter

from app.api.routes import (
    config,
    history,
    milestones,
    sub_subtasks,
    subtasks,
    tasks,
    users,
    views,
)


api_router = APIRouter()
api_router.include_router(views.router, prefix="/views", tags=["views"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(subtasks.router, prefix="/subtasks", tags=["subtasks"])
api_router.include_router(sub_subtasks.router, prefix="/sub-subtasks", tags=["sub-subtasks"])
api_router.include_router(milestones.router, prefix="/milestones", tags=["milestones"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(config.router, prefix="/config", tags=["config"])
api_router.include_router(history.router, prefix="/history", tags=["history"])
