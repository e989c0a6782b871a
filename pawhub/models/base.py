# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models with common fields and validation.
"""

from datetime import datetime, timezone
from pydantic import BaseModel, Field, ConfigDict
from bson import ObjectId


def generate_object_id() -> str:
    """Generate a new MongoDB ObjectId as string."""
    return str(ObjectId())


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class BaseEntity(BaseModel):
    """Base entity with common fields for identity records (usuarios, projetos)."""
    
    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        # Validate assignment
        validate_assignment=True
    )
    
    id: str = Field(default_factory=generate_object_id, description="Unique identifier")
    ativo: bool = Field(default=True, description="Soft active flag")
    criado_em: datetime = Field(default_factory=utcnow, description="Creation timestamp")
    atualizado_em: datetime = Field(default_factory=utcnow, description="Last update timestamp")
    
    def touch(self) -> None:
        """Refresh the update timestamp."""
        self.atualizado_em = utcnow()
    
    def to_document(self) -> dict:
        """Serialize for MongoDB, mapping ``id`` to ``_id``."""
        document = self.model_dump(exclude={"id"})
        document["_id"] = ObjectId(self.id)
        return document
    
    @classmethod
    def from_document(cls, document: dict):
        """Build the entity from a MongoDB document."""
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


class MembershipEntity(BaseModel):
    """
    Base shape for a per-role membership row.
    
    A row is identified by the composite key (id_usuario, id_projeto); there is
    no surrogate id.
    """
    
    model_config = ConfigDict(
        use_enum_values=True,
        validate_assignment=True,
        extra="ignore"
    )
    
    id_usuario: str = Field(..., min_length=1, description="Member user ID")
    id_projeto: str = Field(..., min_length=1, description="Project ID")
    criado_em: datetime = Field(default_factory=utcnow, description="Creation timestamp")
    atualizado_em: datetime = Field(default_factory=utcnow, description="Last update timestamp")
