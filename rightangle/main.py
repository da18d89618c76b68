import logging
import logging.config
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from rightangle.api.api_router import router
from rightangle.core.config import settings
from rightangle.db.base import init_db
from rightangle.helpers.exception_handler import CustomException, http_exception_handler
from rightangle.services.srv_measurement import get_measurement_service

if os.path.exists(settings.LOGGING_CONFIG_FILE):
    logging.config.fileConfig(settings.LOGGING_CONFIG_FILE, disable_existing_loggers=False)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    init_db()
    yield
    await get_measurement_service().shutdown()


def get_application() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME, docs_url="/docs", redoc_url='/re-docs',
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        description='''
        Measurement session backend for the wearable angle/force brace
            - Guided five-step measurement sessions
            - Timed strength capture
            - Baseline and regular results
        ''',
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router, prefix=settings.API_PREFIX)
    application.add_exception_handler(CustomException, http_exception_handler)

    @application.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "services": {
                "measurement_sessions": len(get_measurement_service().active_session_ids),
            }
        }

    return application


app = get_application()
if __name__ == '__main__':
    uvicorn.run(app, host="0.0.0.0", port=8000)
