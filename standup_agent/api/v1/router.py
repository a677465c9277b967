from fastapi import APIRouter
from .messages import router as messages_router
from .standups import router as standups_router

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(messages_router, tags=["messages"])
api_router.include_router(standups_router, prefix="/standups", tags=["standups"])
