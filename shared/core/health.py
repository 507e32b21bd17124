"""
Health and readiness probes.

/health and /health/live answer without touching dependencies; /health/ready
checks the order store database plus local disk and memory headroom.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine
from typing import Dict, Any
from datetime import datetime, timezone
from enum import Enum
import os
import time
import logging
import psutil

logger = logging.getLogger(__name__)

def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"

class ServiceHealth:
    def __init__(self, service_name: str, engine: Engine, version: str = "1.0.0"):
        self.service_name = service_name
        self.engine = engine
        self.version = version
        self.start_time = time.time()
        self.checks_performed = 0

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        async def health_check() -> Dict[str, Any]:
            return {
                "status": HealthStatus.PASS,
                "service": self.service_name,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "timestamp": _now()
            }

        @router.get("/health/live", status_code=status.HTTP_200_OK)
        async def liveness() -> Dict[str, Any]:
            return {"status": "alive"}

        @router.get("/health/ready")
        async def readiness() -> JSONResponse:
            checks = self.perform_readiness_checks()
            overall_status = self.calculate_overall_status(checks)
            status_code = (
                status.HTTP_503_SERVICE_UNAVAILABLE
                if overall_status == HealthStatus.FAIL
                else status.HTTP_200_OK
            )
            return JSONResponse(
                status_code=status_code,
                content={
                    "status": overall_status.value,
                    "version": self.version,
                    "serviceId": self.service_name,
                    "checks": checks,
                    "timestamp": _now()
                }
            )

        @router.get("/metrics")
        async def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            memory = process.memory_info()
            return {
                "service": self.service_name,
                "version": self.version,
                "uptime_seconds": time.time() - self.start_time,
                "checks_performed": self.checks_performed,
                "timestamp": _now(),
                "system": {
                    "memory_rss_bytes": memory.rss,
                    "num_threads": process.num_threads()
                }
            }

        return router

    def perform_readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        return {
            "database:connectivity": self._check_database(),
            "storage:disk_space": self._check_disk_space(),
            "system:memory": self._check_memory(),
        }

    def _check_database(self) -> Dict[str, Any]:
        try:
            start_time = time.time()
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            return {
                "status": HealthStatus.PASS.value,
                "componentType": "datastore",
                "observedValue": f"{(time.time() - start_time) * 1000:.2f}",
                "observedUnit": "ms",
                "time": _now()
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {
                "status": HealthStatus.FAIL.value,
                "componentType": "datastore",
                "output": str(e),
                "time": _now()
            }

    def _check_disk_space(self) -> Dict[str, Any]:
        free_gb = psutil.disk_usage('/').free / (1024 ** 3)
        if free_gb < 1:
            status_val = HealthStatus.FAIL
        elif free_gb < 5:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {
            "status": status_val.value,
            "componentType": "system",
            "observedValue": f"{free_gb:.2f}",
            "observedUnit": "GB",
            "time": _now()
        }

    def _check_memory(self) -> Dict[str, Any]:
        available_mb = psutil.virtual_memory().available / (1024 ** 2)
        if available_mb < 100:
            status_val = HealthStatus.FAIL
        elif available_mb < 500:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {
            "status": status_val.value,
            "componentType": "system",
            "observedValue": f"{available_mb:.2f}",
            "observedUnit": "MB",
            "time": _now()
        }

    def calculate_overall_status(self, checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        statuses = [check.get("status", HealthStatus.PASS.value) for check in checks.values()]
        if HealthStatus.FAIL.value in statuses:
            return HealthStatus.FAIL
        if HealthStatus.WARN.value in statuses:
            return HealthStatus.WARN
        return HealthStatus.PASS
