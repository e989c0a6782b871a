# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the PawHub platform.
"""

from enum import Enum


class Role(str, Enum):
    """Closed set of roles a user can hold."""
    SUPER_ADMIN = "SuperAdmin"
    ADMINISTRADOR = "Administrador"
    FUNCIONARIO = "Funcionario"
    VOLUNTARIO = "Voluntario"
    DOADOR = "Doador"
    ADOTANTE = "Adotante"


class Frequencia(str, Enum):
    """How often a donor or volunteer helps a project."""
    MENSAL = "mensal"
    PONTUAL = "pontual"
    EVENTUAL = "eventual"

    @classmethod
    def _missing_(cls, value):
        # Older rows were written in upper case ("MENSAL")
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class AuditAction(str, Enum):
    """Actions recorded in the audit trail."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    GRANT = "grant"
    REVOKE = "revoke"
    PROMOTE = "promote"
