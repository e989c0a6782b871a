# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.

Services run against a mongomock database, so unique indexes behave like on a
real server without one.
"""

import itertools
import os
import pytest
import mongomock

from pawhub.app import create_app
from pawhub.domain.roles import SCOPED_ROLES
from pawhub.models.entities import Usuario, Projeto
from pawhub.models.enums import Role
from pawhub.services.mongodb import MongoDBService, USUARIOS_COLLECTION, PROJETOS_COLLECTION
from pawhub.services.audit import AuditService
from pawhub.services.usuarios import UsuarioService
from pawhub.services.projetos import ProjetoService
from pawhub.services.membership_store import MembershipStore
from pawhub.services.memberships import MembershipService
from pawhub.services.adotantes import AdotanteService

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['MONGODB_DATABASE'] = 'pawhub_test'

TEST_JWT_SECRET = 'test-secret'

_sequence = itertools.count(1)


@pytest.fixture
def mongodb_service():
    """MongoDB service backed by an in-memory database with indexes created."""
    database = mongomock.MongoClient()['pawhub_test']
    service = MongoDBService(database_name='pawhub_test', database=database)
    service.create_indexes()
    return service


@pytest.fixture
def audit_service(mongodb_service):
    return AuditService(mongodb_service)


@pytest.fixture
def usuario_service(mongodb_service, audit_service):
    return UsuarioService(mongodb_service, audit_service)


@pytest.fixture
def stores(mongodb_service):
    return {
        role: MembershipStore(mongodb_service, descriptor)
        for role, descriptor in SCOPED_ROLES.items()
    }


@pytest.fixture
def projeto_service(mongodb_service, usuario_service, stores, audit_service):
    return ProjetoService(mongodb_service, usuario_service, stores, audit_service)


@pytest.fixture
def membership_service(usuario_service, projeto_service, stores, audit_service):
    return MembershipService(usuario_service, projeto_service, stores, audit_service)


@pytest.fixture
def adotante_service(usuario_service, audit_service):
    return AdotanteService(usuario_service, audit_service)


@pytest.fixture
def make_usuario(mongodb_service):
    """Factory inserting a user with the given roles straight into the store."""
    def _make_usuario(*roles, nome=None):
        n = next(_sequence)
        usuario = Usuario(
            nome=nome or f"Usuario {n}",
            email=f"usuario{n}@example.com",
            cpf=f"{n:011d}",
            roles=[Role(role) for role in roles]
        )
        mongodb_service.get_collection(USUARIOS_COLLECTION).insert_one(usuario.to_document())
        return usuario
    
    return _make_usuario


@pytest.fixture
def make_projeto(mongodb_service):
    """Factory inserting a project straight into the store."""
    def _make_projeto(nome=None):
        n = next(_sequence)
        projeto = Projeto(
            nome=nome or f"Projeto {n}",
            email=f"projeto{n}@example.com",
            telefone="(11) 99999-0000",
            cep="01001-000",
            uf="sp",
            cidade="São Paulo",
            bairro="Sé"
        )
        mongodb_service.get_collection(PROJETOS_COLLECTION).insert_one(projeto.to_document())
        return projeto
    
    return _make_projeto


@pytest.fixture
def super_admin(make_usuario):
    return make_usuario(Role.SUPER_ADMIN, nome="Super Admin")


@pytest.fixture
def administrador(make_usuario):
    return make_usuario(Role.ADMINISTRADOR, nome="Admin")


@pytest.fixture
def projeto(make_projeto):
    return make_projeto("Patas Felizes")


@pytest.fixture
def app(mongodb_service):
    """Application wired to the in-memory database."""
    app = create_app(
        config={
            'ENVIRONMENT': 'test',
            'OTEL_ENABLED': False,
            'DOCS_ENABLED': False,
            'MONGODB_CREATE_INDEXES': False,
            'JWT_SECRET': TEST_JWT_SECRET,
        },
        mongodb_service=mongodb_service
    )
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(app):
    """Build an Authorization header for a user."""
    def _auth_header(usuario):
        token = app.auth_service.generate_access_token(usuario)
        return {"Authorization": f"Bearer {token}"}
    
    return _auth_header
