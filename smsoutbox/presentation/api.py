from fastapi import APIRouter

from smsoutbox.presentation.routers.v1.outbox import router as outbox_router
from smsoutbox.presentation.routes.health import router as health_router

api = APIRouter()
api.include_router(health_router)

# Add all v1 routers here
routers = (outbox_router,)
for router in routers:
    api.include_router(router, prefix="/v1")
