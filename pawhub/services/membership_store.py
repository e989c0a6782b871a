# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Per-role membership store.

One ``MembershipStore`` wraps one membership collection (administradores,
funcionarios, voluntarios, doadores). Rows are addressed by the composite key
(id_usuario, id_projeto); the collection carries a unique index on it.
"""

import logging
from typing import Any, Dict, List, Optional
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from .mongodb import MongoDBService
from ..domain.roles import RoleDescriptor
from ..models.base import MembershipEntity, utcnow
from ..middleware.error_handler import AlreadyMemberError, ServiceUnavailableException

logger = logging.getLogger(__name__)


class MembershipStore:
    """CRUD over one membership collection."""
    
    def __init__(self, mongo_service: MongoDBService, descriptor: RoleDescriptor):
        self.mongo_service = mongo_service
        self.descriptor = descriptor
    
    @property
    def collection(self):
        return self.mongo_service.get_collection(self.descriptor.collection)
    
    def _to_model(self, document: Optional[Dict[str, Any]]) -> Optional[MembershipEntity]:
        if document is None:
            return None
        return self.descriptor.model.model_validate(document)
    
    def _unavailable(self, operation: str, error: PyMongoError) -> ServiceUnavailableException:
        logger.error(
            f"Membership store {operation} failed",
            extra={
                "collection": self.descriptor.collection,
                "operation": operation,
                "error": str(error)
            },
            exc_info=True
        )
        return ServiceUnavailableException(
            f"Falha ao acessar {self.descriptor.plural}, tente novamente"
        )
    
    def _find(self, query: Dict[str, Any]) -> List[MembershipEntity]:
        try:
            documents = self.collection.find(query, {"_id": 0}).sort(
                [("id_usuario", ASCENDING), ("id_projeto", ASCENDING)]
            )
            return [self._to_model(document) for document in documents]
        except PyMongoError as e:
            raise self._unavailable("find", e)
    
    def list_all(self) -> List[MembershipEntity]:
        return self._find({})
    
    def find_by_projeto(self, projeto_id: str) -> List[MembershipEntity]:
        return self._find({"id_projeto": projeto_id})
    
    def find_by_usuario(self, usuario_id: str) -> List[MembershipEntity]:
        return self._find({"id_usuario": usuario_id})
    
    def find_by_usuario_and_projeto(self, usuario_id: str, projeto_id: str) -> Optional[MembershipEntity]:
        try:
            document = self.collection.find_one(
                {"id_usuario": usuario_id, "id_projeto": projeto_id},
                {"_id": 0}
            )
        except PyMongoError as e:
            raise self._unavailable("find_one", e)
        return self._to_model(document)
    
    def insert(self, membership: MembershipEntity) -> MembershipEntity:
        """
        Insert a new row.
        
        Raises:
            AlreadyMemberError: if the unique (id_usuario, id_projeto) index rejects it
        """
        try:
            self.collection.insert_one(membership.model_dump())
        except DuplicateKeyError:
            logger.warning(
                "Duplicate membership rejected by unique index",
                extra={
                    "collection": self.descriptor.collection,
                    "usuario_id": membership.id_usuario,
                    "projeto_id": membership.id_projeto
                }
            )
            raise AlreadyMemberError(self.descriptor.already_member_message())
        except PyMongoError as e:
            raise self._unavailable("insert", e)
        
        return membership
    
    def update(self, usuario_id: str, projeto_id: str, changes: Dict[str, Any]) -> Optional[MembershipEntity]:
        """Apply a partial update; returns the row after the change, or None if absent."""
        changes = dict(changes)
        changes["atualizado_em"] = utcnow()
        try:
            document = self.collection.find_one_and_update(
                {"id_usuario": usuario_id, "id_projeto": projeto_id},
                {"$set": changes},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise self._unavailable("update", e)
        return self._to_model(document)
    
    def delete(self, usuario_id: str, projeto_id: str) -> bool:
        try:
            result = self.collection.delete_one({"id_usuario": usuario_id, "id_projeto": projeto_id})
        except PyMongoError as e:
            raise self._unavailable("delete", e)
        return result.deleted_count > 0
