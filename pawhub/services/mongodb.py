# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB service layer with connection pooling and index management.
"""

import os
import logging
from typing import Dict, Optional, Any, Iterable
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from bson import ObjectId

logger = logging.getLogger(__name__)

USUARIOS_COLLECTION = "usuarios"
PROJETOS_COLLECTION = "projetos"
AUDIT_LOGS_COLLECTION = "audit_logs"
MEMBERSHIP_COLLECTIONS = ("administradores", "funcionarios", "voluntarios", "doadores")


def to_object_id(doc_id: str) -> Optional[ObjectId]:
    """Convert a string ID to ObjectId, or None when it is malformed."""
    if isinstance(doc_id, ObjectId):
        return doc_id
    if not doc_id or not ObjectId.is_valid(doc_id):
        return None
    return ObjectId(doc_id)


class MongoDBService:
    """MongoDB service with connection pooling."""
    
    def __init__(self, connection_string: str = None, database_name: str = None,
                 database: Database = None):
        """
        Initialize MongoDB service with connection pooling.
        
        Args:
            connection_string: MongoDB URI, defaults to ``MONGODB_URI``
            database_name: Database name, defaults to ``MONGODB_DATABASE``
            database: Already-open database handle; skips the client entirely
        """
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI', 
            'mongodb://localhost:27017/pawhub_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'pawhub_dev')
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = database
        
        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.min_pool_size = int(os.getenv('MONGODB_MIN_POOL_SIZE', '1'))
        self.max_idle_time_ms = int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))
        
        logger.info(f"MongoDB service initialized for database: {self.database_name}")
    
    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                raise
        
        return self._client
    
    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database
    
    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]
    
    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")
    
    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            result = self.database.command('ping')
            
            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'database': self.database_name,
                'connection_pool_size': self.max_pool_size
            }
        except Exception as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }
    
    # Index Management
    
    def create_indexes(self, membership_collections: Iterable[str] = MEMBERSHIP_COLLECTIONS) -> None:
        """
        Create the indexes the membership model relies on.
        
        Each membership collection gets a unique compound index on
        (id_usuario, id_projeto); a concurrent duplicate grant then fails
        in the store instead of creating a second row.
        """
        try:
            logger.info("Creating MongoDB indexes...")
            
            # Usuarios indexes
            usuarios = self.get_collection(USUARIOS_COLLECTION)
            usuarios.create_index("email", unique=True)
            usuarios.create_index("cpf", unique=True)
            usuarios.create_index("roles")
            
            # Projetos indexes
            projetos = self.get_collection(PROJETOS_COLLECTION)
            projetos.create_index("nome")
            
            # Membership indexes
            for name in membership_collections:
                collection = self.get_collection(name)
                collection.create_index(
                    [("id_usuario", ASCENDING), ("id_projeto", ASCENDING)],
                    unique=True
                )
                collection.create_index("id_projeto")
            
            # Audit logs indexes
            audit_logs = self.get_collection(AUDIT_LOGS_COLLECTION)
            audit_logs.create_index([("projeto_id", ASCENDING), ("timestamp", DESCENDING)])
            audit_logs.create_index([("user_id", ASCENDING), ("timestamp", DESCENDING)])
            audit_logs.create_index([("entity", ASCENDING), ("timestamp", DESCENDING)])
            audit_logs.create_index("trace_id")
            
            logger.info("MongoDB indexes created successfully")
            
        except Exception as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise
