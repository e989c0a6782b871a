# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the PawHub platform.
"""

import re
from datetime import datetime
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, ConfigDict
from .base import BaseEntity, MembershipEntity, generate_object_id, utcnow
from .enums import Role, Frequencia, AuditAction


EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
ISO_DATE_PATTERN = r'^\d{4}-\d{2}-\d{2}$'


def normalize_email(value: str) -> str:
    """Validate email format and lowercase it."""
    if not re.match(EMAIL_PATTERN, value.strip().lower()):
        raise ValueError('Email inválido')
    return value.strip().lower()


def normalize_cpf(value: str) -> str:
    """Strip punctuation from a CPF and check its length."""
    digits = re.sub(r'\D', '', value or '')
    if len(digits) != 11:
        raise ValueError('CPF deve conter 11 dígitos')
    return digits


def normalize_frequencia(value):
    """Accept frequencia in any letter case ("MENSAL" -> "mensal")."""
    if value is None or value == '':
        return None
    if isinstance(value, Frequencia):
        return value
    return Frequencia(str(value))


class Usuario(BaseEntity):
    """User identity record; ``roles`` is the authoritative role list."""
    
    nome: str = Field(..., min_length=1, max_length=200, description="Full name")
    email: str = Field(..., description="Email address")
    cpf: str = Field(..., description="National id (CPF), digits only")
    telefone: Optional[str] = Field(None, description="Phone number")
    roles: List[Role] = Field(default_factory=list, description="Roles currently held")
    foto_url: Optional[str] = Field(None, description="Profile photo URL")
    
    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)
    
    @field_validator('cpf')
    @classmethod
    def validate_cpf(cls, v):
        return normalize_cpf(v)
    
    @field_validator('nome')
    @classmethod
    def validate_nome(cls, v):
        if not v.strip():
            raise ValueError('Nome não pode ser vazio')
        return v.strip()
    
    @field_validator('roles')
    @classmethod
    def deduplicate_roles(cls, v):
        """The role list is a set; keep first occurrence order."""
        seen = []
        for role in v:
            if role not in seen:
                seen.append(role)
        return seen
    
    def has_role(self, role: Role) -> bool:
        """Check if the user holds a role."""
        return Role(role).value in self.roles


class Projeto(BaseEntity):
    """Organization (tenant) that scopes every membership."""
    
    nome: str = Field(..., min_length=1, max_length=200, description="Project name")
    email: Optional[str] = Field(None, description="Contact email")
    telefone: Optional[str] = Field(None, description="Contact phone, digits only")
    instagram: Optional[str] = Field(None, description="Instagram handle")
    cep: Optional[str] = Field(None, description="Postal code, digits only")
    uf: Optional[str] = Field(None, min_length=2, max_length=2, description="State abbreviation")
    cidade: Optional[str] = Field(None, description="City")
    bairro: Optional[str] = Field(None, description="Neighbourhood")
    endereco: Optional[str] = Field(None, description="Street address")
    numero: Optional[str] = Field(None, description="Street number")
    complemento: Optional[str] = Field(None, description="Address complement")
    
    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v is None:
            return v
        return normalize_email(v)
    
    @field_validator('telefone', 'cep')
    @classmethod
    def digits_only(cls, v):
        if v is None:
            return v
        return re.sub(r'\D', '', v)
    
    @field_validator('uf')
    @classmethod
    def validate_uf(cls, v):
        if v is None:
            return v
        return v.upper()


class Administrador(MembershipEntity):
    """Project administrator membership."""
    
    observacao: Optional[str] = Field(None, max_length=1000, description="Free-form note")


class Funcionario(MembershipEntity):
    """Project employee membership."""
    
    privilegios: bool = Field(default=False, description="Elevated privileges inside the project")
    funcao: Optional[str] = Field(None, max_length=200, description="Job title")
    observacao: Optional[str] = Field(None, max_length=1000, description="Free-form note")


class Voluntario(MembershipEntity):
    """Project volunteer membership."""
    
    servico: Optional[str] = Field(None, max_length=200, description="Service provided")
    frequencia: Optional[Frequencia] = Field(None, description="Help frequency")
    lt_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN, description="Last service date")
    px_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN, description="Next service date")
    
    @field_validator('frequencia', mode='before')
    @classmethod
    def validate_frequencia(cls, v):
        return normalize_frequencia(v)


class Doador(MembershipEntity):
    """Project donor membership."""
    
    observacao: Optional[str] = Field(None, max_length=1000, description="Free-form note")
    frequencia: Optional[Frequencia] = Field(None, description="Donation frequency")
    dt_lembrete: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN, description="Reminder date")
    lt_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN, description="Last donation date")
    px_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN, description="Next donation date")
    
    @field_validator('frequencia', mode='before')
    @classmethod
    def validate_frequencia(cls, v):
        return normalize_frequencia(v)


class AuditLog(BaseModel):
    """Audit log entry for membership and role changes."""
    
    id: str = Field(default_factory=generate_object_id, description="Unique identifier")
    timestamp: datetime = Field(default_factory=utcnow, description="Action timestamp")
    user_id: str = Field(..., description="User who performed the action")
    projeto_id: Optional[str] = Field(None, description="Project scope, if any")
    entity: str = Field(..., description="Entity type")
    entity_id: str = Field(..., description="Entity identifier")
    action: AuditAction = Field(..., description="Action performed")
    before: Optional[Dict[str, Any]] = Field(None, description="State before action")
    after: Optional[Dict[str, Any]] = Field(None, description="State after action")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")
    trace_id: Optional[str] = Field(None, description="OpenTelemetry trace ID")
    span_id: Optional[str] = Field(None, description="OpenTelemetry span ID")
    
    model_config = ConfigDict(
        use_enum_values=True
    )
    
    @field_validator('entity')
    @classmethod
    def validate_entity(cls, v):
        """Validate entity type."""
        valid_entities = [
            'usuario', 'projeto', 'administrador', 'funcionario',
            'voluntario', 'doador', 'adotante'
        ]
        if v not in valid_entities:
            raise ValueError(f'Invalid entity type: {v}')
        return v


class UserContext(BaseModel):
    """Caller identity resolved from the request (token claims and metadata)."""
    
    user_id: str = Field(..., description="Authenticated user ID")
    email: Optional[str] = Field(None, description="User email")
    name: Optional[str] = Field(None, description="User display name")
    roles: List[str] = Field(default_factory=list, description="Roles claimed by the token")
    token_payload: Optional[Dict[str, Any]] = Field(None, description="Original JWT payload")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")
    
    model_config = ConfigDict(
        use_enum_values=True
    )
