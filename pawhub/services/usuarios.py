# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
User directory: owns the user record and its authoritative role list.
"""

import logging
from typing import Any, Dict, List, Optional
from opentelemetry import trace
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from .mongodb import MongoDBService, USUARIOS_COLLECTION, to_object_id
from .audit import AuditService
from ..domain.authorization import require_roles
from ..domain.roles import (
    DEACTIVATE_USUARIO_ROLES,
    MAX_SUPER_ADMINS,
    REGISTRATION_ROLES,
    UPDATE_USUARIO_ROLES,
    describe_roles,
)
from ..models.entities import Usuario
from ..models.enums import Role, AuditAction
from ..models.requests import CreateUsuarioRequest, UpdateUsuarioRequest
from ..models.base import utcnow
from ..middleware.error_handler import (
    AlreadyExistsError,
    ServiceUnavailableException,
    UserNotFoundError,
    ValidationException,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class UsuarioService:
    """Reads and writes of ``usuarios`` records."""
    
    def __init__(self, mongo_service: MongoDBService, audit_service: Optional[AuditService] = None,
                 max_super_admins: int = MAX_SUPER_ADMINS):
        self.mongo_service = mongo_service
        self.audit_service = audit_service
        self.max_super_admins = max_super_admins
    
    @property
    def collection(self):
        return self.mongo_service.get_collection(USUARIOS_COLLECTION)
    
    def _unavailable(self, operation: str, error: PyMongoError) -> ServiceUnavailableException:
        logger.error(
            f"Usuario store {operation} failed",
            extra={"operation": operation, "error": str(error)},
            exc_info=True
        )
        return ServiceUnavailableException("Falha ao acessar usuários, tente novamente")
    
    # Reads
    
    def find_by_id(self, usuario_id: str) -> Optional[Usuario]:
        """Look up a user; malformed ids are treated as absent."""
        object_id = to_object_id(usuario_id)
        if object_id is None:
            return None
        try:
            document = self.collection.find_one({"_id": object_id})
        except PyMongoError as e:
            raise self._unavailable("find_by_id", e)
        return Usuario.from_document(document) if document else None
    
    def get(self, usuario_id: str) -> Usuario:
        usuario = self.find_by_id(usuario_id)
        if usuario is None:
            raise UserNotFoundError()
        return usuario
    
    def find_by_email(self, email: str) -> Optional[Usuario]:
        try:
            document = self.collection.find_one({"email": email.strip().lower()})
        except PyMongoError as e:
            raise self._unavailable("find_by_email", e)
        return Usuario.from_document(document) if document else None
    
    def find_by_cpf(self, cpf: str) -> Optional[Usuario]:
        try:
            document = self.collection.find_one({"cpf": cpf})
        except PyMongoError as e:
            raise self._unavailable("find_by_cpf", e)
        return Usuario.from_document(document) if document else None
    
    def list(self, role: Optional[Role] = None) -> List[Usuario]:
        query: Dict[str, Any] = {}
        if role is not None:
            query["roles"] = Role(role).value
        try:
            documents = self.collection.find(query).sort("nome", ASCENDING)
            return [Usuario.from_document(document) for document in documents]
        except PyMongoError as e:
            raise self._unavailable("list", e)
    
    def count_super_admins(self) -> int:
        try:
            return self.collection.count_documents({"roles": Role.SUPER_ADMIN.value})
        except PyMongoError as e:
            raise self._unavailable("count", e)
    
    def ensure_super_admin_capacity(self) -> None:
        """
        Raises:
            ValidationException: when the SuperAdmin cap is already reached
        """
        if self.count_super_admins() >= self.max_super_admins:
            raise ValidationException(
                f"Limite de {self.max_super_admins} SuperAdmins atingido"
            )
    
    # Writes
    
    def register(self, request: CreateUsuarioRequest) -> Usuario:
        """
        Register a new user.
        
        Raises:
            AlreadyExistsError: email or cpf already registered
            ValidationException: project-scoped role requested, or SuperAdmin cap reached
        """
        with tracer.start_as_current_span("usuarios.register") as span:
            scoped = [role for role in request.roles if Role(role) not in REGISTRATION_ROLES]
            if scoped:
                raise ValidationException(
                    "Papéis vinculados a projetos não podem ser escolhidos no cadastro: "
                    + ", ".join(scoped)
                )
            
            if self.find_by_email(request.email):
                raise AlreadyExistsError("Email já cadastrado")
            if self.find_by_cpf(request.cpf):
                raise AlreadyExistsError("CPF já cadastrado")
            
            usuario = Usuario(
                nome=request.nome,
                email=request.email,
                cpf=request.cpf,
                telefone=request.telefone,
                foto_url=request.foto_url,
                roles=request.roles
            )
            
            if usuario.has_role(Role.SUPER_ADMIN):
                self.ensure_super_admin_capacity()
            
            try:
                self.collection.insert_one(usuario.to_document())
            except DuplicateKeyError:
                raise AlreadyExistsError("Email ou CPF já cadastrado")
            except PyMongoError as e:
                raise self._unavailable("insert", e)
            
            span.set_attribute("usuario.id", usuario.id)
            logger.info(
                "Usuario registered",
                extra={"user_id": usuario.id, "roles": usuario.roles}
            )
            return usuario
    
    def _write_roles(self, usuario_id: str, operation: str, update: Dict[str, Any]) -> Usuario:
        try:
            document = self.collection.find_one_and_update(
                {"_id": to_object_id(usuario_id)},
                {**update, "$set": {"atualizado_em": utcnow()}},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise self._unavailable(operation, e)
        if document is None:
            raise UserNotFoundError()
        
        usuario = Usuario.from_document(document)
        logger.info(
            "Usuario roles updated",
            extra={"user_id": usuario.id, "roles": usuario.roles, "operation": operation}
        )
        return usuario
    
    def add_role(self, usuario_id: str, role: Role) -> Usuario:
        """
        Atomically add ``role`` to the user's role list (``$addToSet``).
        
        Only the membership, adotante and promotion flows call this.
        """
        return self._write_roles(usuario_id, "add_role", {"$addToSet": {"roles": Role(role).value}})
    
    def remove_role(self, usuario_id: str, role: Role) -> Usuario:
        """Atomically remove ``role`` from the user's role list (``$pull``)."""
        return self._write_roles(usuario_id, "remove_role", {"$pull": {"roles": Role(role).value}})
    
    def update_profile(self, usuario_id: str, request: UpdateUsuarioRequest,
                       acting_user_id: str) -> Usuario:
        """
        Update profile fields; roles are untouched.
        
        Users may edit their own profile; anyone else needs SuperAdmin or
        Administrador.
        
        Raises:
            ForbiddenError: actor is someone else without a manager role
            UserNotFoundError: unknown target user
        """
        if acting_user_id != usuario_id:
            require_roles(
                self, acting_user_id, UPDATE_USUARIO_ROLES,
                f"Apenas o próprio usuário, {describe_roles(UPDATE_USUARIO_ROLES)} podem atualizar usuários"
            )
        usuario = self.get(usuario_id)
        changes = request.model_dump(exclude_none=True, exclude={"performado_por"})
        if not changes:
            return usuario
        
        updated = usuario.model_copy(update=changes)
        # Re-validate merged fields
        updated = Usuario.model_validate(updated.model_dump())
        updated.touch()
        changes["atualizado_em"] = updated.atualizado_em
        
        try:
            self.collection.update_one({"_id": to_object_id(usuario_id)}, {"$set": changes})
        except PyMongoError as e:
            raise self._unavailable("update_profile", e)
        
        logger.info("Usuario profile updated", extra={"user_id": usuario_id, "fields": sorted(changes)})
        return updated
    
    def deactivate(self, usuario_id: str, acting_user_id: str) -> Usuario:
        """
        Soft-delete a user (``ativo = False``).
        
        Raises:
            ForbiddenError: actor is neither SuperAdmin nor Administrador
        """
        with tracer.start_as_current_span("usuarios.deactivate") as span:
            span.set_attributes({"usuario.id": usuario_id, "actor.id": acting_user_id})
            
            require_roles(
                self, acting_user_id, DEACTIVATE_USUARIO_ROLES,
                f"Apenas {describe_roles(DEACTIVATE_USUARIO_ROLES)} podem desativar usuários"
            )
            usuario = self.get(usuario_id)
            
            now = utcnow()
            try:
                self.collection.update_one(
                    {"_id": to_object_id(usuario_id)},
                    {"$set": {"ativo": False, "atualizado_em": now}}
                )
            except PyMongoError as e:
                raise self._unavailable("deactivate", e)
            
            usuario.ativo = False
            usuario.atualizado_em = now
            
            if self.audit_service:
                self.audit_service.log_committed_action(
                    user_id=acting_user_id,
                    entity="usuario",
                    entity_id=usuario_id,
                    action=AuditAction.DELETE.value,
                    before={"ativo": True},
                    after={"ativo": False}
                )
            
            logger.info(
                "Usuario deactivated",
                extra={"user_id": usuario_id, "actor_id": acting_user_id}
            )
            return usuario
