# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the PawHub platform.
"""

# Base models
from .base import BaseEntity, MembershipEntity

# Enumerations
from .enums import Role, Frequencia, AuditAction

# Core entities
from .entities import (
    Usuario,
    Projeto,
    Administrador,
    Funcionario,
    Voluntario,
    Doador,
    AuditLog,
    UserContext
)

__all__ = [
    "BaseEntity",
    "MembershipEntity",
    "Role",
    "Frequencia",
    "AuditAction",
    "Usuario",
    "Projeto",
    "Administrador",
    "Funcionario",
    "Voluntario",
    "Doador",
    "AuditLog",
    "UserContext"
]
