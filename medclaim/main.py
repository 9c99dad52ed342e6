from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from medclaim.api.documents import router as documents_router
from medclaim.api.extract import router as extract_router
from medclaim.api.review import router as review_router
from medclaim.api.upload import router as upload_router
from medclaim.config import settings
from medclaim.database import init_db
from medclaim.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging(settings.log_level)
    init_db()
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    Path(settings.extraction_dir).mkdir(parents=True, exist_ok=True)
    logger.info("%s started (env=%s)", settings.app_name, settings.app_env)
    yield


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    @app.get("/", include_in_schema=False)
    def root() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    app.include_router(upload_router)
    app.include_router(extract_router)
    app.include_router(review_router)
    app.include_router(documents_router)
    return app


app = create_app()
