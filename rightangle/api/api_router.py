from fastapi import APIRouter

from rightangle.api import api_healthcheck, api_measurement

router = APIRouter()

router.include_router(api_healthcheck.router, tags=["health-check"], prefix="/healthcheck")
router.include_router(api_measurement.router, tags=["measurement"], prefix="/measurements")
