# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with the platform's JSON error envelope.

Every error leaves the API as ``{"success": false, "error": <message>, "type": <kind>}``.
Domain errors are raised as ``CustomException`` subclasses anywhere below the
route layer and mapped to a status code here.
"""

from flask import Flask, request, jsonify, current_app, make_response
from werkzeug.exceptions import HTTPException
from typing import Dict, Any, Tuple
from opentelemetry import trace
from pydantic import ValidationError
import logging
import traceback

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


def build_error_body(message: str, error_type: str, details: Any = None) -> Dict[str, Any]:
    """Build the error envelope shared by every handler."""
    body = {
        "success": False,
        "error": message,
        "type": error_type
    }
    if details:
        body["details"] = details
    return body


class ErrorHandlerMiddleware:
    """Centralized handling for HTTP and unexpected errors."""

    def __init__(self, app: Flask):
        self.app = app
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(404)
        def handle_not_found(error):
            return self.handle_client_error(error, "resource-not-found", "Recurso não encontrado")

        @self.app.errorhandler(405)
        def handle_method_not_allowed(error):
            return self.handle_client_error(error, "method-not-allowed", "Método não permitido")

        # Handle generic exceptions
        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            if isinstance(error, HTTPException):
                # Responses built by abort(response), e.g. request validation
                return error
            return self.handle_unexpected_error(error)

    def handle_client_error(
        self,
        error: HTTPException,
        error_type: str,
        title: str
    ) -> Tuple[Dict[str, Any], int]:
        """
        Handle client errors (4xx status codes).

        Args:
            error: HTTP exception
            error_type: Error type identifier
            title: Error title

        Returns:
            Tuple of (error response dict, status code)
        """
        logger.warning(
            f"Client error: {title}",
            extra={
                "error_type": error_type,
                "status_code": error.code,
                "path": request.path,
                "method": request.method
            }
        )

        return build_error_body(title, error_type), error.code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Dict[str, Any], int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })

            # Record exception in span
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method,
                    "traceback": traceback.format_exc()
                },
                exc_info=True
            )

            # Don't expose internal error details
            detail = "Erro interno inesperado"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            return build_error_body(detail, "internal-server-error"), 500


class CustomException(Exception):
    """Base class for custom application exceptions."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(CustomException):
    """Exception for validation errors (missing identifiers, bad input)."""

    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []


class AuthenticationException(CustomException):
    """Exception for authentication errors."""

    def __init__(self, message: str):
        super().__init__(message, 401, "authentication-required")


class AuthorizationException(CustomException):
    """Exception for authorization errors."""

    def __init__(self, message: str):
        super().__init__(message, 403, "insufficient-permissions")


class NotFoundException(CustomException):
    """Exception for resource not found errors."""

    def __init__(self, message: str, error_type: str = "resource-not-found"):
        super().__init__(message, 404, error_type)


class ConflictException(CustomException):
    """Exception for resource conflict errors."""

    def __init__(self, message: str, error_type: str = "resource-conflict"):
        super().__init__(message, 409, error_type)


class ServiceUnavailableException(CustomException):
    """Exception for store outages."""

    def __init__(self, message: str):
        super().__init__(message, 503, "service-unavailable")


# Membership error taxonomy

class ForbiddenError(AuthorizationException):
    """The actor's roles do not intersect the operation's allow-set."""


class ActorNotFoundError(NotFoundException):
    """The acting user does not exist."""

    def __init__(self, message: str = "Usuário que está realizando a ação não encontrado"):
        super().__init__(message, "actor-not-found")


class UserNotFoundError(NotFoundException):

    def __init__(self, message: str = "Usuário não encontrado"):
        super().__init__(message, "user-not-found")


class ProjectNotFoundError(NotFoundException):

    def __init__(self, message: str = "Projeto não encontrado"):
        super().__init__(message, "project-not-found")


class MembershipNotFoundError(NotFoundException):

    def __init__(self, message: str):
        super().__init__(message, "membership-not-found")


class AlreadyMemberError(ConflictException):
    """A membership row already exists for (usuario, projeto) under this role."""

    def __init__(self, message: str):
        super().__init__(message, "already-member")


class AlreadyExistsError(ConflictException):
    """A unique user attribute (email, cpf) is already registered."""

    def __init__(self, message: str):
        super().__init__(message, "already-exists")


def make_validation_error_response(e: ValidationError):
    """Request validation callback for flask-openapi3 (400 with the error envelope)."""
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg")
        }
        for error in e.errors()
    ]
    response = make_response(jsonify(build_error_body("Dados inválidos", "validation-error", details)))
    response.status_code = getattr(current_app, "validation_error_status", 400)
    return response


def register_custom_error_handlers(app: Flask):
    """
    Register handlers for custom exceptions.

    Args:
        app: Flask application
    """

    @app.errorhandler(CustomException)
    def handle_custom_exception(error: CustomException):
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            log = logger.error if error.status_code >= 500 else logger.warning
            log(
                f"Custom exception: {error.error_type}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "error_message": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            details = None
            if isinstance(error, ValidationException):
                details = error.validation_errors

            return jsonify(build_error_body(error.message, error.error_type, details)), error.status_code
