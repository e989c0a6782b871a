# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Adotante endpoints: public self-service grant of the adopter marker,
authenticated removal.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
import logging

from ..models.requests import AdotanteCreateRequest, UsuarioPath
from ..middleware.auth import require_auth, get_acting_user_id
from ..utils.request import ResponseBuilder

logger = logging.getLogger(__name__)

adotantes_tag = Tag(name="Adotantes", description="Adopter marker on the user's role list")
adotantes_bp = APIBlueprint(
    'adotantes',
    __name__,
    url_prefix='/api',
    abp_tags=[adotantes_tag]
)


@adotantes_bp.post('/adotantes')
def grant_adotante(body: AdotanteCreateRequest):
    """Mark a user as adopter (idempotent)."""
    usuario = current_app.adotante_service.grant_adotante(body.id_usuario)
    return ResponseBuilder.success(usuario, "Adotante cadastrado com sucesso", status_code=201)


@adotantes_bp.delete('/adotantes/<usuario_id>')
@require_auth
def revoke_adotante(path: UsuarioPath):
    """Remove the adopter marker (idempotent)."""
    usuario = current_app.adotante_service.revoke_adotante(path.usuario_id, get_acting_user_id())
    return ResponseBuilder.success(usuario, "Adotante removido com sucesso")
