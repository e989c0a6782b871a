"""
PawHub API - Flask Application Factory

Builds the Flask application with OpenAPI 3.0 support, wires the MongoDB-backed
services and registers the membership, user, project and adopter endpoints.
"""

import os
import logging
from typing import Any, Dict, Optional
from flask_openapi3 import OpenAPI, Info, Tag

from .observability.config import setup_observability
from .observability.middleware import add_observability_middleware
from .middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_custom_error_handlers,
    make_validation_error_response,
)
from .middleware.auth import AuthMiddleware
from .domain.roles import SCOPED_ROLES
from .services.mongodb import MongoDBService
from .services.auth import AuthService
from .services.audit import AuditService
from .services.health import HealthCheckService
from .services.usuarios import UsuarioService
from .services.projetos import ProjetoService
from .services.membership_store import MembershipStore
from .services.memberships import MembershipService
from .services.adotantes import AdotanteService

logger = logging.getLogger(__name__)

# OpenAPI info
info = Info(
    title="PawHub API",
    version="1.0.0",
    description="Role and membership management for animal-protection projects"
)

health_tag = Tag(name="Health", description="System health and status")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


def load_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Read configuration from the environment, then apply ``overrides``."""
    config = {
        'ENVIRONMENT': os.getenv('ENVIRONMENT', 'development'),
        'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/pawhub_dev'),
        'MONGODB_DATABASE': os.getenv('MONGODB_DATABASE', 'pawhub_dev'),
        'MONGODB_CREATE_INDEXES': _env_flag('MONGODB_CREATE_INDEXES', 'true'),
        'JWT_SECRET': os.getenv('JWT_SECRET', 'dev-secret-key'),
        'JWT_ALGORITHM': os.getenv('JWT_ALGORITHM', 'HS256'),
        'OTEL_ENABLED': _env_flag('OTEL_ENABLED', 'true'),
        'DOCS_ENABLED': _env_flag('DOCS_ENABLED', 'true'),
        'MAX_SUPER_ADMINS': int(os.getenv('MAX_SUPER_ADMINS', '2')),
    }
    config.update(overrides or {})
    config['DEBUG'] = config['ENVIRONMENT'] == 'development'
    return config


def create_app(config: Optional[Dict[str, Any]] = None,
               mongodb_service: Optional[MongoDBService] = None) -> OpenAPI:
    """
    Build the PawHub application.
    
    Args:
        config: Overrides for the environment-derived configuration
        mongodb_service: Pre-built MongoDB service (tests inject one backed
            by an in-memory database)
    """
    config = load_config(config)
    
    # Initialize observability first
    otel_active = setup_observability(config['ENVIRONMENT'], config['OTEL_ENABLED'])
    
    app = OpenAPI(
        __name__,
        info=info,
        doc_ui=config['DOCS_ENABLED'],
        validation_error_status=400,
        validation_error_callback=make_validation_error_response
    )
    app.config.update(config)
    
    add_observability_middleware(app, instrument=otel_active)
    
    # Initialize services
    mongodb_service = mongodb_service or MongoDBService(
        config['MONGODB_URI'], config['MONGODB_DATABASE']
    )
    if config['MONGODB_CREATE_INDEXES']:
        mongodb_service.create_indexes()
    
    auth_service = AuthService(config['JWT_SECRET'], config['JWT_ALGORITHM'])
    audit_service = AuditService(mongodb_service)
    usuario_service = UsuarioService(
        mongodb_service, audit_service, max_super_admins=config['MAX_SUPER_ADMINS']
    )
    stores = {
        role: MembershipStore(mongodb_service, descriptor)
        for role, descriptor in SCOPED_ROLES.items()
    }
    projeto_service = ProjetoService(mongodb_service, usuario_service, stores, audit_service)
    membership_service = MembershipService(usuario_service, projeto_service, stores, audit_service)
    adotante_service = AdotanteService(usuario_service, audit_service)
    health_service = HealthCheckService(mongodb_service, info.version)
    
    # Error handling
    ErrorHandlerMiddleware(app)
    register_custom_error_handlers(app)
    
    # Make services available to routes
    app.mongodb_service = mongodb_service
    app.auth_service = auth_service
    app.audit_service = audit_service
    app.usuario_service = usuario_service
    app.projeto_service = projeto_service
    app.membership_service = membership_service
    app.adotante_service = adotante_service
    app.health_service = health_service
    app.auth_middleware = AuthMiddleware(auth_service)
    
    # Register routes
    from .routes.memberships import membership_blueprints
    from .routes.adotantes import adotantes_bp
    from .routes.usuarios import usuarios_bp
    from .routes.projetos import projetos_bp
    
    for bp in membership_blueprints:
        app.register_api(bp)
    app.register_api(adotantes_bp)
    app.register_api(usuarios_bp)
    app.register_api(projetos_bp)
    
    @app.get('/api/healthz', tags=[health_tag])
    def health_check():
        """Health check with MongoDB dependency status."""
        health_data = app.health_service.get_health()
        status_code = 200 if health_data["status"] == "healthy" else 503
        return health_data, status_code
    
    logger.info(
        "PawHub API initialized",
        extra={"environment": config['ENVIRONMENT'], "database": mongodb_service.database_name}
    )
    return app
