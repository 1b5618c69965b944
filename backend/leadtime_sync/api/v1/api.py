from fastapi import APIRouter

from leadtime_sync.api.v1.endpoints import external_sources, sync, schedule

api_router = APIRouter()
api_router.include_router(external_sources.router, prefix="/external-sources", tags=["external-sources"])
api_router.include_router(sync.router, prefix="/sync", tags=["sync"])
api_router.include_router(schedule.router, prefix="/schedule", tags=["schedule"])
