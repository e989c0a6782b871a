"""
Health Check Service

Reports the API's status together with its MongoDB dependency.
"""

import os
import time
from typing import Dict, Any
from opentelemetry import trace

from .mongodb import MongoDBService
from ..models.base import utcnow

tracer = trace.get_tracer(__name__)


class HealthCheckService:
    """Service for dependency health monitoring."""
    
    def __init__(self, mongodb_service: MongoDBService, service_version: str = "1.0.0"):
        self.mongodb_service = mongodb_service
        self.service_version = service_version
    
    def get_health(self) -> Dict[str, Any]:
        """Get health status including the MongoDB dependency."""
        with tracer.start_as_current_span("health.check") as span:
            start_time = time.time()
            
            mongodb_health = self.mongodb_service.health_check()
            overall_status = "healthy" if mongodb_health.get("status") == "healthy" else "unhealthy"
            
            response_time_ms = round((time.time() - start_time) * 1000, 2)
            
            span.set_attributes({
                "health.overall_status": overall_status,
                "health.response_time_ms": response_time_ms,
                "health.mongodb_status": mongodb_health.get("status", "unknown")
            })
            
            return {
                "status": overall_status,
                "service": "pawhub-api",
                "version": self.service_version,
                "environment": os.getenv('ENVIRONMENT', 'development'),
                "timestamp": utcnow().isoformat(),
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "mongodb": mongodb_health
                }
            }
