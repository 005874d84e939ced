# anta/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import APP_VERSION
from .config import get_settings
from .database import init_db
from .errors import register_exception_handlers
from .logging_setup import setup_logging
from .routes import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    if settings.db.create_tables:
        init_db()
    logger.info("ANTA API %s started", APP_VERSION)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log.level, settings.log.json_output)

    app = FastAPI(title="ANTA API", version=APP_VERSION, lifespan=lifespan)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
