from fastapi import APIRouter

from backend.app.api.v1.endpoints.health import router as health_router
from backend.app.api.v1.endpoints.conversions import router as conversions_router
from backend.app.api.v1.endpoints.orders import router as orders_router
from backend.app.api.v1.endpoints.requirement_items import router as requirement_items_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(conversions_router, tags=["conversions"])
router.include_router(orders_router, tags=["orders"])
router.include_router(requirement_items_router, tags=["requirement_items"])
