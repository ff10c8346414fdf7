"""
Health checks for liveness, readiness and database probes.
"""
from typing import Dict, Any
from .logging import get_logger

logger = get_logger()


class HealthChecker:
    """
    Health checker for EventLedger service.

    Provides:
    - Liveness checks (is the service running?)
    - Readiness checks (can the service handle traffic?)
    - Database checks (store connectivity and connection usage)

    A failing database check is reported to the caller and logged. It never
    stops the process; restarting is left to whatever supervises it.
    """

    def __init__(self, event_service):
        self.event_service = event_service

    def liveness(self) -> str:
        return "OK"

    def readiness(self) -> str:
        return "OK"

    async def database(self) -> Dict[str, Any]:
        """
        Database check.

        Returns:
            dict: "status" is "up" with connection counters and an assessment
            message, or "down" with an error message
        """
        result = await self.event_service.database_health()
        if result["status"] != "up":
            logger.error("health_check_database_down", error=result.get("error"))
        return result
