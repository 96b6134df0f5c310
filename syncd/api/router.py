from fastapi import APIRouter

from syncd.api.events import router as events_router
from syncd.api.tasks import router as tasks_router
from syncd.api.users import router as users_router

api_router = APIRouter()
api_router.include_router(tasks_router)
api_router.include_router(events_router)
api_router.include_router(users_router)
