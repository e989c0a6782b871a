# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.

Body models of mutating requests carry an optional ``performado_por`` field.
The acting user is always the Bearer token's subject; when sent,
``performado_por`` must name that same user.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from .entities import (
    ISO_DATE_PATTERN,
    normalize_email,
    normalize_cpf,
    normalize_frequencia,
)
from .enums import Role, Frequencia


class ActorRequest(BaseModel):
    """Base for mutating requests."""
    
    model_config = ConfigDict(
        use_enum_values=True,
        extra="ignore"
    )
    
    performado_por: Optional[str] = Field(None, description="Acting user ID; must match the token subject")


class MembershipCreateRequest(ActorRequest):
    """Common identifiers for a membership grant."""
    
    id_usuario: str = Field(..., min_length=1, description="User receiving the role")
    id_projeto: str = Field(..., min_length=1, description="Project scoping the role")


# Administrador

class AdministradorCreateRequest(MembershipCreateRequest):
    observacao: Optional[str] = Field(None, max_length=1000)


class AdministradorUpdateRequest(ActorRequest):
    observacao: Optional[str] = Field(None, max_length=1000)


# Funcionario

class FuncionarioCreateRequest(MembershipCreateRequest):
    privilegios: Optional[bool] = Field(None, description="Defaults to false")
    funcao: Optional[str] = Field(None, max_length=200)
    observacao: Optional[str] = Field(None, max_length=1000)


class FuncionarioUpdateRequest(ActorRequest):
    privilegios: Optional[bool] = None
    funcao: Optional[str] = Field(None, max_length=200)
    observacao: Optional[str] = Field(None, max_length=1000)


# Voluntario

class VoluntarioCreateRequest(MembershipCreateRequest):
    servico: Optional[str] = Field(None, max_length=200)
    frequencia: Optional[Frequencia] = None
    lt_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    px_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    
    @field_validator('frequencia', mode='before')
    @classmethod
    def validate_frequencia(cls, v):
        return normalize_frequencia(v)


class VoluntarioUpdateRequest(ActorRequest):
    servico: Optional[str] = Field(None, max_length=200)
    frequencia: Optional[Frequencia] = None
    lt_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    px_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    
    @field_validator('frequencia', mode='before')
    @classmethod
    def validate_frequencia(cls, v):
        return normalize_frequencia(v)


# Doador

class DoadorCreateRequest(MembershipCreateRequest):
    observacao: Optional[str] = Field(None, max_length=1000)
    frequencia: Optional[Frequencia] = None
    dt_lembrete: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    lt_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    px_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    
    @field_validator('frequencia', mode='before')
    @classmethod
    def validate_frequencia(cls, v):
        return normalize_frequencia(v)


class DoadorUpdateRequest(ActorRequest):
    observacao: Optional[str] = Field(None, max_length=1000)
    frequencia: Optional[Frequencia] = None
    dt_lembrete: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    lt_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    px_data: Optional[str] = Field(None, pattern=ISO_DATE_PATTERN)
    
    @field_validator('frequencia', mode='before')
    @classmethod
    def validate_frequencia(cls, v):
        return normalize_frequencia(v)


# Adotante

class AdotanteCreateRequest(BaseModel):
    """Public self-service request to become an adopter."""
    
    id_usuario: str = Field(..., min_length=1, description="User becoming an adopter")


# Usuarios

class CreateUsuarioRequest(BaseModel):
    """Public registration request."""
    
    model_config = ConfigDict(use_enum_values=True)
    
    nome: str = Field(..., min_length=1, max_length=200)
    email: str = Field(...)
    cpf: str = Field(...)
    telefone: Optional[str] = None
    foto_url: Optional[str] = None
    roles: List[Role] = Field(default_factory=list, description="Initial roles: Adotante or SuperAdmin only")
    
    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)
    
    @field_validator('cpf')
    @classmethod
    def validate_cpf(cls, v):
        return normalize_cpf(v)


class UpdateUsuarioRequest(ActorRequest):
    """Profile update; roles are not editable here."""
    
    nome: Optional[str] = Field(None, min_length=1, max_length=200)
    telefone: Optional[str] = None
    foto_url: Optional[str] = None


# Projetos

class CreateProjetoRequest(ActorRequest):
    nome: str = Field(..., min_length=1, max_length=200)
    email: str = Field(...)
    telefone: str = Field(..., min_length=1)
    instagram: Optional[str] = None
    cep: str = Field(..., min_length=1)
    uf: str = Field(..., min_length=2, max_length=2)
    cidade: str = Field(..., min_length=1)
    bairro: str = Field(..., min_length=1)
    endereco: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None


class UpdateProjetoRequest(ActorRequest):
    nome: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = None
    telefone: Optional[str] = None
    instagram: Optional[str] = None
    cep: Optional[str] = None
    uf: Optional[str] = Field(None, min_length=2, max_length=2)
    cidade: Optional[str] = None
    bairro: Optional[str] = None
    endereco: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None


# Path parameters

class UsuarioProjetoPath(BaseModel):
    usuario_id: str = Field(..., description="User ID")
    projeto_id: str = Field(..., description="Project ID")


class UsuarioPath(BaseModel):
    usuario_id: str = Field(..., description="User ID")


class ProjetoPath(BaseModel):
    projeto_id: str = Field(..., description="Project ID")
