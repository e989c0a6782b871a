# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Adotante marker: a project-independent role held directly in the user's role
list. Granting and revoking it does not go through the authorization gate.
"""

import logging
from typing import Optional
from opentelemetry import trace

from .usuarios import UsuarioService
from .audit import AuditService
from ..models.entities import Usuario
from ..models.enums import Role, AuditAction

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class AdotanteService:

    def __init__(self, usuarios: UsuarioService, audit_service: Optional[AuditService] = None):
        self.usuarios = usuarios
        self.audit_service = audit_service

    def _audit(self, usuario: Usuario, action: AuditAction, before: list,
               acting_user_id: Optional[str] = None) -> None:
        if self.audit_service:
            self.audit_service.log_committed_action(
                user_id=acting_user_id or usuario.id,
                entity="adotante",
                entity_id=usuario.id,
                action=action.value,
                before={"roles": before},
                after={"roles": list(usuario.roles)}
            )

    def grant_adotante(self, usuario_id: str) -> Usuario:
        """Idempotently add Adotante to the user's role list."""
        with tracer.start_as_current_span("adotantes.grant") as span:
            span.set_attribute("usuario.id", usuario_id)
            usuario = self.usuarios.get(usuario_id)
            if usuario.has_role(Role.ADOTANTE):
                return usuario

            before = list(usuario.roles)
            usuario = self.usuarios.add_role(usuario_id, Role.ADOTANTE)
            self._audit(usuario, AuditAction.GRANT, before)
            logger.info("Adotante granted", extra={"user_id": usuario_id})
            return usuario

    def revoke_adotante(self, usuario_id: str, acting_user_id: Optional[str] = None) -> Usuario:
        """
        Remove Adotante from the user's role list.

        The ``$pull`` is written whether or not the marker is present; only a
        change is audited.
        """
        with tracer.start_as_current_span("adotantes.revoke") as span:
            span.set_attributes({"usuario.id": usuario_id, "actor.id": acting_user_id or ""})
            before = list(self.usuarios.get(usuario_id).roles)

            usuario = self.usuarios.remove_role(usuario_id, Role.ADOTANTE)
            if Role.ADOTANTE.value in before:
                self._audit(usuario, AuditAction.REVOKE, before, acting_user_id)
                logger.info(
                    "Adotante revoked",
                    extra={"user_id": usuario_id, "actor_id": acting_user_id}
                )
            return usuario
