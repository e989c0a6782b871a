# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - persistence, directories and the membership lifecycle.
"""

from .mongodb import MongoDBService
from .usuarios import UsuarioService
from .projetos import ProjetoService
from .membership_store import MembershipStore
from .memberships import MembershipService
from .adotantes import AdotanteService
from .audit import AuditService

__all__ = [
    "MongoDBService",
    "UsuarioService",
    "ProjetoService",
    "MembershipStore",
    "MembershipService",
    "AdotanteService",
    "AuditService"
]
