# SPDX-License-Identifier: Apache-2.0

"""
Authentication service for JWT validation.

Tokens are HS256-signed; the ``sub`` claim carries the acting user's id.
Login and session issuance live outside this service, ``generate_access_token``
exists for tooling and tests.
"""

import os
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from opentelemetry import trace
import logging

from ..models.entities import Usuario

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


class AuthService:
    """JWT authentication service with HMAC signing."""
    
    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None,
                 access_token_expire_minutes: int = 60):
        """
        Initialize the authentication service.
        
        Args:
            secret: Shared signing secret, defaults to ``JWT_SECRET``
            algorithm: Signing algorithm, defaults to ``JWT_ALGORITHM``
            access_token_expire_minutes: Lifetime of generated tokens
        """
        self.secret = secret or os.getenv("JWT_SECRET", "dev-secret-key")
        self.algorithm = algorithm or os.getenv("JWT_ALGORITHM", "HS256")
        self.access_token_expire_minutes = access_token_expire_minutes
        
        if self.secret == "dev-secret-key":
            logger.warning("No JWT_SECRET configured, using development secret")
    
    def generate_access_token(self, usuario: Usuario) -> str:
        """
        Generate an access token for a user.
        
        Args:
            usuario: User the token identifies
            
        Returns:
            Encoded JWT
        """
        with tracer.start_as_current_span("auth.generate_access_token") as span:
            span.set_attributes({
                "auth.operation": "generate_access_token",
                "usuario.id": usuario.id
            })
            
            now = datetime.now(timezone.utc)
            payload = {
                "sub": usuario.id,
                "email": usuario.email,
                "name": usuario.nome,
                "roles": list(usuario.roles),
                "iat": now,
                "exp": now + timedelta(minutes=self.access_token_expire_minutes),
                "type": "access"
            }
            
            return jwt.encode(payload, self.secret, algorithm=self.algorithm)
    
    def validate_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Validate and decode a JWT token.
        
        Args:
            token: JWT token string to validate
            token_type: Expected token type
            
        Returns:
            Decoded token payload
            
        Raises:
            TokenValidationError: If token is invalid or expired
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attributes({
                "auth.operation": "validate_token",
                "auth.token_type": token_type
            })
            
            try:
                payload = jwt.decode(
                    token,
                    self.secret,
                    algorithms=[self.algorithm],
                    options={"verify_exp": True, "require": ["sub"]}
                )
                
                # Tokens without a type claim are accepted as access tokens
                if payload.get("type", "access") != token_type:
                    raise TokenValidationError(f"Invalid token type. Expected {token_type}")
                
                span.set_attributes({
                    "auth.validation_result": "success",
                    "usuario.id": str(payload.get("sub"))
                })
                
                logger.debug(
                    "Token validated successfully",
                    extra={
                        "user_id": payload.get("sub"),
                        "token_type": token_type
                    }
                )
                
                return payload
                
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
                
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")
