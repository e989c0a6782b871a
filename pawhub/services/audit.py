# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Audit service for role and membership changes with OpenTelemetry correlation.
"""

import logging
from typing import Dict, Optional, Any
from opentelemetry import trace
from pymongo.errors import PyMongoError

from .mongodb import MongoDBService, AUDIT_LOGS_COLLECTION
from ..models.entities import AuditLog
from ..middleware.error_handler import ServiceUnavailableException
from ..utils.request import RequestParser

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class AuditService:
    """Append-only trail of grants, updates, revocations and promotions."""
    
    def __init__(self, mongo_service: MongoDBService):
        """Initialize audit service with MongoDB dependency."""
        self.mongo_service = mongo_service
        self.collection_name = AUDIT_LOGS_COLLECTION
        logger.info("Audit service initialized")
    
    def log_action(
        self,
        user_id: str,
        entity: str,
        entity_id: str,
        action: str,
        projeto_id: Optional[str] = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        request_info: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log an audit trail entry with trace correlation and structured logging.
        
        Args:
            user_id: ID of user performing the action
            entity: Type of entity being acted upon
            entity_id: ID of the specific entity
            action: Action being performed
            projeto_id: Project scope of the change, if any
            before: State before the action (optional)
            after: State after the action (optional)
            request_info: Request metadata (IP, user agent), read from the
                current request when omitted
        
        Returns:
            str: ID of the created audit log entry
        """
        with tracer.start_as_current_span("audit.log_action") as span:
            span_context = span.get_span_context()
            request_info = request_info or RequestParser.get_request_metadata()
            
            entry = AuditLog(
                user_id=user_id,
                projeto_id=projeto_id,
                entity=entity,
                entity_id=entity_id,
                action=action,
                before=before,
                after=after,
                ip_address=request_info.get("ip_address"),
                user_agent=request_info.get("user_agent")
            )
            
            # Add trace correlation if available
            if span_context.is_valid:
                entry.trace_id = format(span_context.trace_id, "032x")
                entry.span_id = format(span_context.span_id, "016x")
            
            span.set_attributes({
                "audit.entity": entity,
                "audit.action": entry.action,
                "audit.user_id": user_id,
                "audit.entity_id": entity_id
            })
            
            try:
                document = entry.model_dump()
                document["_id"] = document.pop("id")
                self.mongo_service.get_collection(self.collection_name).insert_one(document)
            except PyMongoError as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.error(
                    "Failed to create audit trail entry",
                    extra={
                        "entity": entity,
                        "entity_id": entity_id,
                        "action": entry.action,
                        "user_id": user_id,
                        "projeto_id": projeto_id,
                        "error": str(e)
                    },
                    exc_info=True
                )
                raise ServiceUnavailableException("Falha ao registrar auditoria")
            
            logger.info(
                "Audit trail entry created",
                extra={
                    "audit_id": entry.id,
                    "entity": entity,
                    "entity_id": entity_id,
                    "action": entry.action,
                    "user_id": user_id,
                    "projeto_id": projeto_id,
                    "trace_id": entry.trace_id
                }
            )
            
            return entry.id
    
    def log_committed_action(self, **kwargs) -> Optional[str]:
        """
        Audit a change that is already committed to the store.
        
        Takes the same arguments as ``log_action``. A failed audit write is
        logged, not raised; the committed change stands.
        
        Returns:
            ID of the audit entry, or None when it could not be written
        """
        try:
            return self.log_action(**kwargs)
        except ServiceUnavailableException:
            logger.warning(
                "Audit entry lost for committed change",
                extra={
                    "entity": kwargs.get("entity"),
                    "entity_id": kwargs.get("entity_id"),
                    "action": kwargs.get("action"),
                    "user_id": kwargs.get("user_id")
                }
            )
            return None
