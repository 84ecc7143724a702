from fastapi import APIRouter

from .push import router as push_router
from .system import router as system_router
from .tasks import router as tasks_router

root_router = APIRouter(prefix="/api")

root_router.include_router(system_router)
root_router.include_router(push_router, prefix="/push")
root_router.include_router(tasks_router, prefix="/tasks")

__all__ = ["root_router"]
