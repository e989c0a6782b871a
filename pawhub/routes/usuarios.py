# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
User directory endpoints.
"""

from flask import current_app, request
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from ..models.requests import CreateUsuarioRequest, UpdateUsuarioRequest, UsuarioPath
from ..models.enums import Role
from ..middleware.auth import require_auth, get_acting_user_id
from ..middleware.error_handler import ValidationException
from ..utils.request import RequestParser, ResponseBuilder

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

usuarios_tag = Tag(name="Usuarios", description="User registration and profile management")
usuarios_bp = APIBlueprint(
    'usuarios',
    __name__,
    url_prefix='/api',
    abp_tags=[usuarios_tag]
)


@usuarios_bp.post('/usuarios')
def register_usuario(body: CreateUsuarioRequest):
    """Public registration; only Adotante and SuperAdmin may be requested as roles."""
    usuario = current_app.usuario_service.register(body)
    return ResponseBuilder.success(usuario, "Usuário cadastrado com sucesso", status_code=201)


@usuarios_bp.get('/usuarios')
def list_usuarios():
    """List users, optionally filtered with ``?role=<Role>``."""
    role = request.args.get('role')
    if role is not None:
        try:
            role = Role(role)
        except ValueError:
            raise ValidationException(f"Papel inválido: {role}")
    
    usuarios = current_app.usuario_service.list(role)
    return ResponseBuilder.success(usuarios)


@usuarios_bp.get('/usuarios/<usuario_id>')
def get_usuario(path: UsuarioPath):
    usuario = current_app.usuario_service.get(path.usuario_id)
    return ResponseBuilder.success(usuario)


@usuarios_bp.patch('/usuarios/<usuario_id>')
@require_auth
def update_usuario(path: UsuarioPath, body: UpdateUsuarioRequest):
    """Update profile fields (roles are managed by the membership endpoints)."""
    acting_user_id = get_acting_user_id(body.performado_por)
    usuario = current_app.usuario_service.update_profile(path.usuario_id, body, acting_user_id)
    return ResponseBuilder.success(usuario, "Usuário atualizado com sucesso")


@usuarios_bp.delete('/usuarios/<usuario_id>')
@require_auth
def deactivate_usuario(path: UsuarioPath):
    """Deactivate a user; records are never hard-deleted."""
    acting_user_id = get_acting_user_id(RequestParser.get_json_body().get("performado_por"))
    usuario = current_app.usuario_service.deactivate(path.usuario_id, acting_user_id)
    return ResponseBuilder.success(usuario, "Usuário desativado com sucesso")


@usuarios_bp.patch('/usuarios/<usuario_id>/promover-superadmin')
@require_auth
def promote_usuario(path: UsuarioPath):
    """Promote a user to SuperAdmin."""
    acting_user_id = get_acting_user_id(RequestParser.get_json_body().get("performado_por"))
    usuario = current_app.membership_service.promote_to_super_admin(path.usuario_id, acting_user_id)
    return ResponseBuilder.success(usuario, "Usuário promovido a SuperAdmin com sucesso")
