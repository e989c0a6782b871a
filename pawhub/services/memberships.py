# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Membership lifecycle service.

The only writer allowed to touch both the per-role membership collections and
the user's role list. Every operation is parameterized by the scoped role and
checks the actor against that role's allow-set before changing anything.
"""

import logging
from typing import Any, Dict, List, Optional
from opentelemetry import trace

from .usuarios import UsuarioService
from .projetos import ProjetoService
from .membership_store import MembershipStore
from .audit import AuditService
from ..domain.authorization import require_roles
from ..domain.roles import RoleDescriptor, PROMOTE_SUPER_ADMIN_ROLES, describe_roles, get_descriptor
from ..models.base import MembershipEntity
from ..models.entities import Usuario
from ..models.enums import Role, AuditAction
from ..middleware.error_handler import (
    AlreadyMemberError,
    MembershipNotFoundError,
    ValidationException,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class MembershipService:
    """Grant, update and revoke scoped roles; promote SuperAdmins."""
    
    def __init__(self, usuarios: UsuarioService, projetos: ProjetoService,
                 stores: Dict[Role, MembershipStore], audit_service: Optional[AuditService] = None):
        self.usuarios = usuarios
        self.projetos = projetos
        self.stores = stores
        self.audit_service = audit_service
    
    def store(self, role) -> MembershipStore:
        return self.stores[Role(role)]
    
    def _audit(self, descriptor: RoleDescriptor, acting_user_id: str, action: AuditAction,
               membership: MembershipEntity, before: Optional[dict] = None,
               after: Optional[dict] = None) -> None:
        if self.audit_service:
            self.audit_service.log_committed_action(
                user_id=acting_user_id,
                entity=descriptor.audit_entity,
                entity_id=membership.id_usuario,
                action=action.value,
                projeto_id=membership.id_projeto,
                before=before,
                after=after
            )
    
    @staticmethod
    def _supplied(descriptor: RoleDescriptor, attrs: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Role attributes actually supplied (unknown keys and None values dropped)."""
        attrs = attrs or {}
        return {
            name: attrs[name]
            for name in descriptor.attribute_names
            if attrs.get(name) is not None
        }
    
    # Reads
    
    def list_all(self, role) -> List[MembershipEntity]:
        return self.store(role).list_all()
    
    def list_by_projeto(self, role, projeto_id: str) -> List[MembershipEntity]:
        return self.store(role).find_by_projeto(projeto_id)
    
    def list_by_usuario(self, role, usuario_id: str) -> List[MembershipEntity]:
        return self.store(role).find_by_usuario(usuario_id)
    
    def get(self, role, usuario_id: str, projeto_id: str) -> MembershipEntity:
        """
        Raises:
            MembershipNotFoundError: no row for the pair
        """
        membership = self.store(role).find_by_usuario_and_projeto(usuario_id, projeto_id)
        if membership is None:
            raise MembershipNotFoundError(get_descriptor(role).not_found_message())
        return membership
    
    # Writes
    
    def grant(self, role, usuario_id: str, projeto_id: str,
              attrs: Optional[Dict[str, Any]], acting_user_id: str) -> MembershipEntity:
        """
        Make a user a member of a project under a scoped role.
        
        Raises:
            ValidationException: missing identifiers
            ActorNotFoundError: unknown acting user
            ForbiddenError: actor outside the create allow-set
            UserNotFoundError: unknown target user
            ProjectNotFoundError: unknown project
            AlreadyMemberError: row already exists for the pair
        """
        descriptor = get_descriptor(role)
        
        with tracer.start_as_current_span("memberships.grant") as span:
            span.set_attributes({
                "membership.role": descriptor.role.value,
                "usuario.id": usuario_id or "",
                "projeto.id": projeto_id or "",
                "actor.id": acting_user_id or ""
            })
            
            if not usuario_id or not projeto_id:
                raise ValidationException("ID do usuário e ID do projeto são obrigatórios")
            
            require_roles(
                self.usuarios, acting_user_id, descriptor.create_roles,
                descriptor.forbidden_message("cadastrar", descriptor.create_roles)
            )
            
            usuario = self.usuarios.get(usuario_id)
            self.projetos.get(projeto_id)
            
            store = self.store(descriptor.role)
            if store.find_by_usuario_and_projeto(usuario_id, projeto_id) is not None:
                raise AlreadyMemberError(descriptor.already_member_message())
            
            # Built before any write so invalid attributes leave nothing behind
            membership = descriptor.model(
                id_usuario=usuario_id,
                id_projeto=projeto_id,
                **{**descriptor.defaults, **self._supplied(descriptor, attrs)}
            )
            
            # Atomic $addToSet; the role list is never rewritten wholesale
            self.usuarios.add_role(usuario.id, descriptor.role)
            
            store.insert(membership)
            
            self._audit(descriptor, acting_user_id, AuditAction.GRANT, membership,
                        after=membership.model_dump(mode="json"))
            
            logger.info(
                f"{descriptor.role.value} granted",
                extra={
                    "role": descriptor.role.value,
                    "user_id": usuario_id,
                    "projeto_id": projeto_id,
                    "actor_id": acting_user_id
                }
            )
            return membership
    
    def update(self, role, usuario_id: str, projeto_id: str,
               attrs: Optional[Dict[str, Any]], acting_user_id: str) -> MembershipEntity:
        """
        Partially update a membership row; the user's role list is untouched.
        
        Raises:
            ActorNotFoundError: unknown acting user
            ForbiddenError: actor outside the update allow-set
            MembershipNotFoundError: no row for the pair
        """
        descriptor = get_descriptor(role)
        
        with tracer.start_as_current_span("memberships.update") as span:
            span.set_attributes({
                "membership.role": descriptor.role.value,
                "usuario.id": usuario_id,
                "projeto.id": projeto_id,
                "actor.id": acting_user_id or ""
            })
            
            require_roles(
                self.usuarios, acting_user_id, descriptor.update_roles,
                descriptor.forbidden_message("atualizar", descriptor.update_roles)
            )
            
            existing = self.get(descriptor.role, usuario_id, projeto_id)
            changes = self._supplied(descriptor, attrs)
            if not changes:
                return existing
            
            merged = descriptor.model.model_validate({**existing.model_dump(), **changes})
            stored = merged.model_dump(include=set(changes))
            
            updated = self.store(descriptor.role).update(usuario_id, projeto_id, stored)
            if updated is None:
                # Row deleted between read and write
                raise MembershipNotFoundError(descriptor.not_found_message())
            
            self._audit(descriptor, acting_user_id, AuditAction.UPDATE, updated,
                        before=existing.model_dump(mode="json"),
                        after=updated.model_dump(mode="json"))
            
            logger.info(
                f"{descriptor.role.value} updated",
                extra={
                    "role": descriptor.role.value,
                    "user_id": usuario_id,
                    "projeto_id": projeto_id,
                    "actor_id": acting_user_id,
                    "fields": sorted(changes)
                }
            )
            return updated
    
    def revoke(self, role, usuario_id: str, projeto_id: str, acting_user_id: str) -> MembershipEntity:
        """
        Delete a membership row.
        
        The role stays in the user's role list even when this was the user's
        last row for it.
        
        Raises:
            ActorNotFoundError: unknown acting user
            ForbiddenError: actor outside the delete allow-set
            MembershipNotFoundError: no row for the pair
        """
        descriptor = get_descriptor(role)
        
        with tracer.start_as_current_span("memberships.revoke") as span:
            span.set_attributes({
                "membership.role": descriptor.role.value,
                "usuario.id": usuario_id,
                "projeto.id": projeto_id,
                "actor.id": acting_user_id or ""
            })
            
            require_roles(
                self.usuarios, acting_user_id, descriptor.delete_roles,
                descriptor.forbidden_message("remover", descriptor.delete_roles)
            )
            
            existing = self.get(descriptor.role, usuario_id, projeto_id)
            if not self.store(descriptor.role).delete(usuario_id, projeto_id):
                raise MembershipNotFoundError(descriptor.not_found_message())
            
            self._audit(descriptor, acting_user_id, AuditAction.REVOKE, existing,
                        before=existing.model_dump(mode="json"))
            
            logger.info(
                f"{descriptor.role.value} revoked",
                extra={
                    "role": descriptor.role.value,
                    "user_id": usuario_id,
                    "projeto_id": projeto_id,
                    "actor_id": acting_user_id
                }
            )
            return existing
    
    def conceder_privilegios(self, usuario_id: str, projeto_id: str, acting_user_id: str) -> MembershipEntity:
        return self.update(Role.FUNCIONARIO, usuario_id, projeto_id, {"privilegios": True}, acting_user_id)
    
    def remover_privilegios(self, usuario_id: str, projeto_id: str, acting_user_id: str) -> MembershipEntity:
        return self.update(Role.FUNCIONARIO, usuario_id, projeto_id, {"privilegios": False}, acting_user_id)
    
    def promote_to_super_admin(self, usuario_id: str, acting_user_id: str) -> Usuario:
        """
        Add SuperAdmin to a user's role list.
        
        Raises:
            ActorNotFoundError: unknown acting user
            ForbiddenError: actor is not SuperAdmin
            UserNotFoundError: unknown target user
            ValidationException: SuperAdmin cap reached
        """
        with tracer.start_as_current_span("memberships.promote_to_super_admin") as span:
            span.set_attributes({"usuario.id": usuario_id, "actor.id": acting_user_id or ""})
            
            require_roles(
                self.usuarios, acting_user_id, PROMOTE_SUPER_ADMIN_ROLES,
                f"Apenas {describe_roles(PROMOTE_SUPER_ADMIN_ROLES)} pode promover usuários a SuperAdmin"
            )
            
            usuario = self.usuarios.get(usuario_id)
            if usuario.has_role(Role.SUPER_ADMIN):
                return usuario
            
            self.usuarios.ensure_super_admin_capacity()
            before = list(usuario.roles)
            usuario = self.usuarios.add_role(usuario_id, Role.SUPER_ADMIN)
            
            if self.audit_service:
                self.audit_service.log_committed_action(
                    user_id=acting_user_id,
                    entity="usuario",
                    entity_id=usuario_id,
                    action=AuditAction.PROMOTE.value,
                    before={"roles": before},
                    after={"roles": list(usuario.roles)}
                )
            
            logger.info(
                "Usuario promoted to SuperAdmin",
                extra={"user_id": usuario_id, "actor_id": acting_user_id}
            )
            return usuario
