# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Project directory: organization records that scope every membership.
"""

import logging
from typing import Dict, List, Optional, Set
from opentelemetry import trace
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from .mongodb import MongoDBService, PROJETOS_COLLECTION, to_object_id
from .usuarios import UsuarioService
from .membership_store import MembershipStore
from .audit import AuditService
from ..domain.authorization import require_roles
from ..domain.roles import CREATE_PROJETO_ROLES, UPDATE_PROJETO_ROLES, describe_roles
from ..models.entities import Projeto, Usuario
from ..models.enums import Role, AuditAction
from ..models.requests import CreateProjetoRequest, UpdateProjetoRequest
from ..middleware.error_handler import ProjectNotFoundError, ServiceUnavailableException

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ProjetoService:
    """Reads and writes of ``projetos`` records."""
    
    def __init__(self, mongo_service: MongoDBService, usuarios: UsuarioService,
                 stores: Dict[Role, MembershipStore], audit_service: Optional[AuditService] = None):
        self.mongo_service = mongo_service
        self.usuarios = usuarios
        self.stores = stores
        self.audit_service = audit_service
    
    @property
    def collection(self):
        return self.mongo_service.get_collection(PROJETOS_COLLECTION)
    
    def _unavailable(self, operation: str, error: PyMongoError) -> ServiceUnavailableException:
        logger.error(
            f"Projeto store {operation} failed",
            extra={"operation": operation, "error": str(error)},
            exc_info=True
        )
        return ServiceUnavailableException("Falha ao acessar projetos, tente novamente")
    
    def _audit(self, acting_user_id: str, projeto_id: str, action: AuditAction,
               before: Optional[dict] = None, after: Optional[dict] = None) -> None:
        if self.audit_service:
            self.audit_service.log_committed_action(
                user_id=acting_user_id,
                entity="projeto",
                entity_id=projeto_id,
                action=action.value,
                projeto_id=projeto_id,
                before=before,
                after=after
            )
    
    def find_by_id(self, projeto_id: str) -> Optional[Projeto]:
        object_id = to_object_id(projeto_id)
        if object_id is None:
            return None
        try:
            document = self.collection.find_one({"_id": object_id})
        except PyMongoError as e:
            raise self._unavailable("find_by_id", e)
        return Projeto.from_document(document) if document else None
    
    def get(self, projeto_id: str) -> Projeto:
        projeto = self.find_by_id(projeto_id)
        if projeto is None:
            raise ProjectNotFoundError()
        return projeto
    
    def _find(self, query: dict) -> List[Projeto]:
        try:
            documents = self.collection.find(query).sort("nome", ASCENDING)
            return [Projeto.from_document(document) for document in documents]
        except PyMongoError as e:
            raise self._unavailable("list", e)
    
    def list_all(self) -> List[Projeto]:
        return self._find({})
    
    def member_project_ids(self, usuario_id: str) -> Set[str]:
        """Projects the user belongs to through any membership store."""
        projeto_ids = set()
        for store in self.stores.values():
            projeto_ids.update(row.id_projeto for row in store.find_by_usuario(usuario_id))
        return projeto_ids
    
    def list_for(self, usuario: Optional[Usuario]) -> List[Projeto]:
        """
        List projects visible to a user.
        
        Anonymous callers and SuperAdmins see every project; everyone else sees
        the projects they hold a membership in.
        """
        if usuario is None or usuario.has_role(Role.SUPER_ADMIN):
            return self.list_all()
        
        object_ids = [to_object_id(projeto_id) for projeto_id in self.member_project_ids(usuario.id)]
        object_ids = [object_id for object_id in object_ids if object_id is not None]
        if not object_ids:
            return []
        return self._find({"_id": {"$in": object_ids}})
    
    def create(self, request: CreateProjetoRequest, acting_user_id: str) -> Projeto:
        """
        Raises:
            ForbiddenError: actor is not SuperAdmin
        """
        with tracer.start_as_current_span("projetos.create") as span:
            span.set_attribute("actor.id", acting_user_id)
            require_roles(
                self.usuarios, acting_user_id, CREATE_PROJETO_ROLES,
                f"Apenas {describe_roles(CREATE_PROJETO_ROLES)} pode cadastrar projetos"
            )
            
            projeto = Projeto(**request.model_dump(exclude={"performado_por"}))
            try:
                self.collection.insert_one(projeto.to_document())
            except PyMongoError as e:
                raise self._unavailable("insert", e)
            
            self._audit(acting_user_id, projeto.id, AuditAction.CREATE,
                        after=projeto.model_dump(mode="json"))
            span.set_attribute("projeto.id", projeto.id)
            logger.info("Projeto created", extra={"projeto_id": projeto.id, "actor_id": acting_user_id})
            return projeto
    
    def update(self, projeto_id: str, request: UpdateProjetoRequest, acting_user_id: str) -> Projeto:
        """
        Raises:
            ForbiddenError: actor is neither SuperAdmin nor Administrador
            ProjectNotFoundError: unknown project
        """
        with tracer.start_as_current_span("projetos.update") as span:
            span.set_attributes({"projeto.id": projeto_id, "actor.id": acting_user_id})
            require_roles(
                self.usuarios, acting_user_id, UPDATE_PROJETO_ROLES,
                f"Apenas {describe_roles(UPDATE_PROJETO_ROLES)} podem atualizar projetos"
            )
            projeto = self.get(projeto_id)
            
            changes = request.model_dump(exclude_none=True, exclude={"performado_por"})
            if not changes:
                return projeto
            
            updated = Projeto.model_validate({**projeto.model_dump(), **changes})
            updated.touch()
            stored = {field: getattr(updated, field) for field in changes}
            stored["atualizado_em"] = updated.atualizado_em
            
            try:
                self.collection.update_one({"_id": to_object_id(projeto_id)}, {"$set": stored})
            except PyMongoError as e:
                raise self._unavailable("update", e)
            
            self._audit(acting_user_id, projeto_id, AuditAction.UPDATE,
                        before=projeto.model_dump(mode="json"), after=updated.model_dump(mode="json"))
            logger.info("Projeto updated", extra={"projeto_id": projeto_id, "actor_id": acting_user_id})
            return updated
    
    def deactivate(self, projeto_id: str, acting_user_id: str) -> Projeto:
        """
        Soft-delete a project (``ativo = False``).
        
        Raises:
            ForbiddenError: actor is not SuperAdmin
            ProjectNotFoundError: unknown project
        """
        with tracer.start_as_current_span("projetos.deactivate") as span:
            span.set_attributes({"projeto.id": projeto_id, "actor.id": acting_user_id})
            require_roles(
                self.usuarios, acting_user_id, CREATE_PROJETO_ROLES,
                f"Apenas {describe_roles(CREATE_PROJETO_ROLES)} pode remover projetos"
            )
            projeto = self.get(projeto_id)
            projeto.ativo = False
            projeto.touch()
            
            try:
                self.collection.update_one(
                    {"_id": to_object_id(projeto_id)},
                    {"$set": {"ativo": False, "atualizado_em": projeto.atualizado_em}}
                )
            except PyMongoError as e:
                raise self._unavailable("deactivate", e)
            
            self._audit(acting_user_id, projeto_id, AuditAction.DELETE,
                        before={"ativo": True}, after={"ativo": False})
            logger.info("Projeto deactivated", extra={"projeto_id": projeto_id, "actor_id": acting_user_id})
            return projeto
