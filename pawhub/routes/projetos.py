# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Project directory endpoints.
"""

from flask import current_app, g
from flask_openapi3 import APIBlueprint, Tag
import logging

from ..models.requests import CreateProjetoRequest, UpdateProjetoRequest, ProjetoPath
from ..middleware.auth import optional_auth, require_auth, get_acting_user_id
from ..middleware.error_handler import ActorNotFoundError
from ..utils.request import RequestParser, ResponseBuilder

logger = logging.getLogger(__name__)

projetos_tag = Tag(name="Projetos", description="Organizations scoping every membership")
projetos_bp = APIBlueprint(
    'projetos',
    __name__,
    url_prefix='/api',
    abp_tags=[projetos_tag]
)


@projetos_bp.get('/projetos')
@optional_auth
def list_projetos():
    """
    List projects.
    
    With a token, non-SuperAdmin callers only see the projects they belong
    to; without one, every project is listed.
    """
    usuario = None
    if g.user_context is not None:
        usuario = current_app.usuario_service.find_by_id(g.user_context.user_id)
        if usuario is None:
            raise ActorNotFoundError()
    
    projetos = current_app.projeto_service.list_for(usuario)
    return ResponseBuilder.success(projetos)


@projetos_bp.get('/projetos/<projeto_id>')
def get_projeto(path: ProjetoPath):
    projeto = current_app.projeto_service.get(path.projeto_id)
    return ResponseBuilder.success(projeto)


@projetos_bp.post('/projetos')
@require_auth
def create_projeto(body: CreateProjetoRequest):
    acting_user_id = get_acting_user_id(body.performado_por)
    projeto = current_app.projeto_service.create(body, acting_user_id)
    return ResponseBuilder.success(projeto, "Projeto cadastrado com sucesso", status_code=201)


@projetos_bp.patch('/projetos/<projeto_id>')
@require_auth
def update_projeto(path: ProjetoPath, body: UpdateProjetoRequest):
    acting_user_id = get_acting_user_id(body.performado_por)
    projeto = current_app.projeto_service.update(path.projeto_id, body, acting_user_id)
    return ResponseBuilder.success(projeto, "Projeto atualizado com sucesso")


@projetos_bp.delete('/projetos/<projeto_id>')
@require_auth
def deactivate_projeto(path: ProjetoPath):
    acting_user_id = get_acting_user_id(RequestParser.get_json_body().get("performado_por"))
    projeto = current_app.projeto_service.deactivate(path.projeto_id, acting_user_id)
    return ResponseBuilder.success(projeto, "Projeto removido com sucesso")
