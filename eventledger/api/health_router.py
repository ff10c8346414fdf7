"""Health probe routes."""
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from .dependencies import get_health_checker
from ..auth.basic import verify_basic_auth
from ..health import HealthChecker

router = APIRouter(prefix="/api/v1/health", tags=["health"], dependencies=[Depends(verify_basic_auth)])


@router.get("/db")
async def database_health(checker: HealthChecker = Depends(get_health_checker)):
    """
    Database probe.

    Always answers 200; the body's "status" field says whether the store is
    "up" or "down".
    """
    return await checker.database()


@router.get("/liveness", response_class=PlainTextResponse)
async def liveness(checker: HealthChecker = Depends(get_health_checker)):
    return checker.liveness()


@router.get("/readiness", response_class=PlainTextResponse)
async def readiness(checker: HealthChecker = Depends(get_health_checker)):
    return checker.readiness()
