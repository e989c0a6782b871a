# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Membership endpoints, one blueprint per scoped role.

    GET    /api/<slug>                              list all
    GET    /api/<slug>/projeto/<projeto_id>         list by project
    GET    /api/<slug>/usuario/<usuario_id>         list by user
    GET    /api/<slug>/<usuario_id>/<projeto_id>    get
    POST   /api/<slug>                              grant
    PATCH  /api/<slug>/<usuario_id>/<projeto_id>    update
    DELETE /api/<slug>/<usuario_id>/<projeto_id>    revoke
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from ..domain.roles import RoleDescriptor, SCOPED_ROLES, FUNCIONARIO
from ..models.requests import UsuarioProjetoPath, UsuarioPath, ProjetoPath
from ..middleware.auth import require_auth, get_acting_user_id
from ..utils.request import RequestParser, ResponseBuilder

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def create_membership_blueprint(descriptor: RoleDescriptor) -> APIBlueprint:
    """Build the CRUD blueprint of one scoped role."""
    role = descriptor.role
    create_request = descriptor.create_request
    update_request = descriptor.update_request
    singular = descriptor.singular.capitalize()
    base = f'/{descriptor.slug}'
    
    tag = Tag(name=descriptor.plural.capitalize(), description=f"Memberships of role {role.value}")
    bp = APIBlueprint(
        descriptor.slug,
        __name__,
        url_prefix='/api',
        abp_tags=[tag]
    )
    
    @bp.get(base)
    def list_memberships():
        """List every membership row of this role."""
        memberships = current_app.membership_service.list_all(role)
        return ResponseBuilder.success(memberships)
    
    @bp.get(base + '/projeto/<projeto_id>')
    def list_memberships_by_projeto(path: ProjetoPath):
        """List the members of a project."""
        memberships = current_app.membership_service.list_by_projeto(role, path.projeto_id)
        return ResponseBuilder.success(memberships)
    
    @bp.get(base + '/usuario/<usuario_id>')
    def list_memberships_by_usuario(path: UsuarioPath):
        """List the projects a user belongs to under this role."""
        memberships = current_app.membership_service.list_by_usuario(role, path.usuario_id)
        return ResponseBuilder.success(memberships)
    
    @bp.get(base + '/<usuario_id>/<projeto_id>')
    def get_membership(path: UsuarioProjetoPath):
        membership = current_app.membership_service.get(role, path.usuario_id, path.projeto_id)
        return ResponseBuilder.success(membership)
    
    @bp.post(base)
    @require_auth
    def grant_membership(body: create_request):
        """Make a user a member of a project under this role."""
        acting_user_id = get_acting_user_id(body.performado_por)
        attrs = body.model_dump(exclude={"id_usuario", "id_projeto", "performado_por"})
        
        membership = current_app.membership_service.grant(
            role, body.id_usuario, body.id_projeto, attrs, acting_user_id
        )
        return ResponseBuilder.success(
            membership, f"{singular} cadastrado com sucesso", status_code=201
        )
    
    @bp.patch(base + '/<usuario_id>/<projeto_id>')
    @require_auth
    def update_membership(path: UsuarioProjetoPath, body: update_request):
        acting_user_id = get_acting_user_id(body.performado_por)
        attrs = body.model_dump(exclude={"performado_por"})
        
        membership = current_app.membership_service.update(
            role, path.usuario_id, path.projeto_id, attrs, acting_user_id
        )
        return ResponseBuilder.success(membership, f"{singular} atualizado com sucesso")
    
    @bp.delete(base + '/<usuario_id>/<projeto_id>')
    @require_auth
    def revoke_membership(path: UsuarioProjetoPath):
        """Remove a membership row; the user keeps the role in its role list."""
        acting_user_id = get_acting_user_id(RequestParser.get_json_body().get("performado_por"))
        
        current_app.membership_service.revoke(
            role, path.usuario_id, path.projeto_id, acting_user_id
        )
        return ResponseBuilder.success(message=f"{singular} removido com sucesso")
    
    if descriptor is FUNCIONARIO:
        @bp.patch(base + '/<usuario_id>/<projeto_id>/conceder-privilegios')
        @require_auth
        def conceder_privilegios(path: UsuarioProjetoPath):
            acting_user_id = get_acting_user_id(RequestParser.get_json_body().get("performado_por"))
            membership = current_app.membership_service.conceder_privilegios(
                path.usuario_id, path.projeto_id, acting_user_id
            )
            return ResponseBuilder.success(membership, "Privilégios concedidos com sucesso")
        
        @bp.patch(base + '/<usuario_id>/<projeto_id>/remover-privilegios')
        @require_auth
        def remover_privilegios(path: UsuarioProjetoPath):
            acting_user_id = get_acting_user_id(RequestParser.get_json_body().get("performado_por"))
            membership = current_app.membership_service.remover_privilegios(
                path.usuario_id, path.projeto_id, acting_user_id
            )
            return ResponseBuilder.success(membership, "Privilégios removidos com sucesso")
    
    return bp


membership_blueprints = [
    create_membership_blueprint(descriptor) for descriptor in SCOPED_ROLES.values()
]
