"""
OpenTelemetry Configuration

Sets up distributed tracing and logging for the PawHub API.
"""

import os
import logging
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

logger = logging.getLogger(__name__)

SERVICE_NAME = 'pawhub-api'


def get_sampler(environment: str) -> TraceIdRatioBased:
    """Environment-specific sampling."""
    if environment == 'production':
        return TraceIdRatioBased(0.1)  # 10% sampling in production
    if environment == 'staging':
        return TraceIdRatioBased(0.5)  # 50% sampling in staging
    return TraceIdRatioBased(1.0)  # 100% sampling in development


def setup_observability(environment: str = None, otel_enabled: bool = None) -> bool:
    """
    Initialize OpenTelemetry tracing and logging.
    
    Returns:
        True when a tracer provider was installed
    """
    environment = environment or os.getenv('ENVIRONMENT', 'development')
    if otel_enabled is None:
        otel_enabled = os.getenv('OTEL_ENABLED', 'true').lower() == 'true'
    service_version = os.getenv('SERVICE_VERSION', '1.0.0')
    
    setup_structured_logging(environment)
    
    if not otel_enabled:
        # Spans stay no-ops without a tracer provider
        return False
    
    resource = Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": service_version,
        "deployment.environment": environment
    })
    
    tracer_provider = TracerProvider(
        sampler=get_sampler(environment),
        resource=resource
    )
    
    otlp_endpoint = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    if otlp_endpoint:
        headers = None
        if os.getenv('OTEL_API_KEY'):
            headers = {"Authorization": f"Bearer {os.getenv('OTEL_API_KEY')}"}
        otlp_exporter = OTLPSpanExporter(endpoint=otlp_endpoint, headers=headers)
        tracer_provider.add_span_processor(
            BatchSpanProcessor(otlp_exporter, max_export_batch_size=512)
        )
    elif environment == 'development':
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    
    trace.set_tracer_provider(tracer_provider)
    logger.info(
        "OpenTelemetry configured",
        extra={"environment": environment, "otlp_endpoint": otlp_endpoint}
    )
    return True


def setup_structured_logging(environment: str):
    """Configure root logging per environment."""
    log_level = {
        'production': logging.WARNING,
        'staging': logging.INFO,
        'development': logging.DEBUG
    }.get(environment, logging.INFO)
    
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
        handlers=[logging.StreamHandler()]
    )
    
    if environment == 'production':
        # Reduce noise, focus on errors and business events
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('pymongo').setLevel(logging.WARNING)
    else:
        logging.getLogger('pymongo').setLevel(logging.INFO)
