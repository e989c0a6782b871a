# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for JWT token validation and actor resolution.

Mutating requests must carry a Bearer token; its ``sub`` claim is the acting
user. Read endpoints accept anonymous requests.
"""

from functools import wraps
from flask import request, g, current_app
from typing import Optional, Dict, Any, Callable
from opentelemetry import trace
import logging

from ..models.entities import UserContext
from ..services.auth import AuthService, TokenValidationError
from .error_handler import AuthenticationException, ForbiddenError

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.
    
    Handles token extraction, validation and user context building.
    """
    
    def __init__(self, auth_service: AuthService):
        """
        Initialize the authentication middleware.
        
        Args:
            auth_service: JWT authentication service
        """
        self.auth_service = auth_service
    
    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract JWT token from request headers.
        
        Returns:
            JWT token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '')
        
        if not auth_header:
            return None
        
        # Handle "Bearer <token>" format
        if auth_header.startswith('Bearer '):
            return auth_header[7:].strip() or None
        
        return auth_header.strip() or None
    
    def build_user_context(self, token_payload: Dict[str, Any], request_info: Dict[str, Any]) -> UserContext:
        """
        Build user context from validated token payload and request information.
        
        Args:
            token_payload: Decoded JWT payload
            request_info: Request metadata (IP, user agent)
            
        Returns:
            UserContext object for request processing
        """
        return UserContext(
            user_id=str(token_payload["sub"]),
            email=token_payload.get("email"),
            name=token_payload.get("name"),
            roles=token_payload.get("roles", []),
            token_payload=token_payload,
            ip_address=request_info.get("ip_address"),
            user_agent=request_info.get("user_agent")
        )
    
    def get_request_info(self) -> Dict[str, Any]:
        """
        Extract request metadata for user context.
        
        Returns:
            Dictionary with request information
        """
        return {
            "ip_address": request.remote_addr,
            "user_agent": request.headers.get('User-Agent', ''),
            "request_id": request.headers.get('X-Request-ID')
        }
    
    def authenticate(self) -> Optional[UserContext]:
        """
        Validate the request's token, if any.
        
        Returns:
            UserContext, or None when the request carries no token
            
        Raises:
            AuthenticationException: If a token is present but invalid
        """
        with tracer.start_as_current_span("auth.middleware.validate_request") as span:
            span.set_attribute("auth.operation", "validate_request")
            
            token = self.extract_token_from_request()
            if not token:
                span.set_attribute("auth.result", "anonymous")
                return None
            
            try:
                token_payload = self.auth_service.validate_token(token, "access")
            except TokenValidationError as e:
                span.set_attribute("auth.result", "invalid_token")
                logger.warning(f"Authentication failed: {str(e)}")
                raise AuthenticationException(str(e))
            
            user_context = self.build_user_context(token_payload, self.get_request_info())
            
            span.set_attributes({
                "auth.result": "success",
                "usuario.id": user_context.user_id
            })
            
            logger.debug(
                "Authentication successful",
                extra={
                    "user_id": user_context.user_id,
                    "ip_address": user_context.ip_address
                }
            )
            
            return user_context


def optional_auth(f: Callable) -> Callable:
    """
    Decorator that stores the token's user context in ``g.user_context``.
    
    Requests without a token proceed with ``g.user_context = None``; an
    invalid token is rejected with 401. Only read endpoints use it.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_middleware: AuthMiddleware = current_app.auth_middleware
        g.user_context = auth_middleware.authenticate()
        return f(*args, **kwargs)
    
    return decorated_function


def require_auth(f: Callable) -> Callable:
    """
    Decorator requiring a valid Bearer token.
    
    The token's user context is stored in ``g.user_context``.
    
    Raises:
        AuthenticationException: token missing, invalid or expired
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_middleware: AuthMiddleware = current_app.auth_middleware
        user_context = auth_middleware.authenticate()
        if user_context is None:
            logger.warning(
                "Authentication failed: missing token",
                extra={"path": request.path, "method": request.method}
            )
            raise AuthenticationException("Token não fornecido")
        
        g.user_context = user_context
        return f(*args, **kwargs)
    
    return decorated_function


def get_acting_user_id(performado_por: Optional[str] = None) -> str:
    """
    Return the acting user of an authenticated request (the token's ``sub``).
    
    ``performado_por``, when a client still sends it, must name the same user.
    
    Raises:
        AuthenticationException: no authenticated user on the request
        ForbiddenError: ``performado_por`` names someone else
    """
    user_context = g.get("user_context")
    if user_context is None:
        raise AuthenticationException("Token não fornecido")
    
    if performado_por and performado_por != user_context.user_id:
        logger.warning(
            "Actor mismatch between token and body",
            extra={"user_id": user_context.user_id, "performado_por": performado_por}
        )
        raise ForbiddenError("performado_por não corresponde ao usuário autenticado")
    
    return user_context.user_id
