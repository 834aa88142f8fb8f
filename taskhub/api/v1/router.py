from fastapi import APIRouter

from taskhub.api.v1.endpoints import comments, folders, notifications, projects, tasks, users, workspaces

router = APIRouter()

router.include_router(users.router)
router.include_router(workspaces.router)
router.include_router(projects.router)
router.include_router(folders.router)
router.include_router(tasks.router)
router.include_router(comments.router)
router.include_router(notifications.router)
