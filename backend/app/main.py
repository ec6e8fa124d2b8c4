import logging

from fastapi import FastAPI

from backend.app.api.v1.router import router as v1_router
from backend.app.core.config import get_settings

settings = get_settings()


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging()

app = FastAPI(title=settings.APP_NAME, version="0.1.0")
app.include_router(v1_router, prefix="/v1")
