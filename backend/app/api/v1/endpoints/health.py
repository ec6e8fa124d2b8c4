from fastapi import APIRouter

from backend.app.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health_check():
    return {"status": "ok", "app": get_settings().APP_NAME}
