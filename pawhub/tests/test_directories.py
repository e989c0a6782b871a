# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the user and project directories and the adotante marker.
"""

import pytest

from pawhub.models.enums import Role
from pawhub.models.requests import (
    CreateUsuarioRequest,
    UpdateUsuarioRequest,
    CreateProjetoRequest,
    UpdateProjetoRequest,
)
from pawhub.middleware.error_handler import (
    AlreadyExistsError,
    ForbiddenError,
    ProjectNotFoundError,
    UserNotFoundError,
    ValidationException,
)


@pytest.fixture
def registration():
    return CreateUsuarioRequest(
        nome="Maria Silva",
        email="Maria@Example.com",
        cpf="123.456.789-01",
        telefone="11999990000"
    )


@pytest.fixture
def projeto_request():
    return CreateProjetoRequest(
        nome="Abrigo Esperança",
        email="contato@esperanca.org",
        telefone="(21) 3333-4444",
        cep="20000-000",
        uf="rj",
        cidade="Rio de Janeiro",
        bairro="Centro"
    )


class TestUsuarioService:
    """Test the user directory."""
    
    def test_register(self, usuario_service, registration):
        usuario = usuario_service.register(registration)
        
        stored = usuario_service.get(usuario.id)
        assert stored.email == "maria@example.com"
        assert stored.cpf == "12345678901"
        assert stored.roles == []
        assert stored.ativo is True
    
    def test_register_duplicate_email(self, usuario_service, registration):
        usuario_service.register(registration)
        duplicate = registration.model_copy(update={"cpf": "98765432100"})
        
        with pytest.raises(AlreadyExistsError) as exc_info:
            usuario_service.register(duplicate)
        
        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Email já cadastrado"
    
    def test_register_duplicate_cpf(self, usuario_service, registration):
        usuario_service.register(registration)
        duplicate = registration.model_copy(update={"email": "outra@example.com"})
        
        with pytest.raises(AlreadyExistsError) as exc_info:
            usuario_service.register(duplicate)
        
        assert exc_info.value.message == "CPF já cadastrado"
    
    def test_register_respects_super_admin_cap(self, usuario_service, make_usuario, registration):
        make_usuario(Role.SUPER_ADMIN)
        make_usuario(Role.SUPER_ADMIN)
        request = registration.model_copy(update={"roles": [Role.SUPER_ADMIN.value]})
        
        with pytest.raises(ValidationException):
            usuario_service.register(request)
    
    def test_get_unknown(self, usuario_service):
        with pytest.raises(UserNotFoundError):
            usuario_service.get("not-an-object-id")
    
    def test_list_filters_by_role(self, usuario_service, make_usuario):
        doador = make_usuario(Role.DOADOR)
        make_usuario(Role.VOLUNTARIO)
        
        assert [usuario.id for usuario in usuario_service.list(Role.DOADOR)] == [doador.id]
        assert len(usuario_service.list()) == 2
    
    @pytest.mark.parametrize("role", [Role.ADMINISTRADOR, Role.FUNCIONARIO, Role.VOLUNTARIO, Role.DOADOR])
    def test_register_rejects_project_scoped_roles(self, usuario_service, registration, role):
        request = registration.model_copy(update={"roles": [Role.ADOTANTE.value, role.value]})

        with pytest.raises(ValidationException) as exc_info:
            usuario_service.register(request)

        assert role.value in exc_info.value.message
        assert usuario_service.find_by_email("maria@example.com") is None

    def test_register_super_admin_bootstrap(self, usuario_service, registration):
        request = registration.model_copy(update={"roles": [Role.SUPER_ADMIN.value]})

        usuario = usuario_service.register(request)

        assert usuario_service.get(usuario.id).roles == [Role.SUPER_ADMIN.value]

    def test_update_profile_keeps_roles(self, usuario_service, make_usuario):
        usuario = make_usuario(Role.DOADOR)

        updated = usuario_service.update_profile(
            usuario.id, UpdateUsuarioRequest(nome="Novo Nome"), usuario.id
        )

        assert updated.nome == "Novo Nome"
        assert usuario_service.get(usuario.id).roles == [Role.DOADOR.value]

    def test_update_profile_of_someone_else(self, usuario_service, administrador, make_usuario):
        usuario = make_usuario()
        voluntario = make_usuario(Role.VOLUNTARIO)

        with pytest.raises(ForbiddenError):
            usuario_service.update_profile(usuario.id, UpdateUsuarioRequest(nome="X"), voluntario.id)

        updated = usuario_service.update_profile(
            usuario.id, UpdateUsuarioRequest(nome="Pelo Admin"), administrador.id
        )
        assert updated.nome == "Pelo Admin"

    def test_role_writes_are_atomic(self, usuario_service, make_usuario):
        usuario = make_usuario()

        usuario_service.add_role(usuario.id, Role.VOLUNTARIO)
        usuario_service.add_role(usuario.id, Role.DOADOR)
        usuario_service.add_role(usuario.id, Role.VOLUNTARIO)
        usuario_service.remove_role(usuario.id, Role.DOADOR)

        assert usuario_service.get(usuario.id).roles == [Role.VOLUNTARIO.value]

    def test_role_write_unknown_user(self, usuario_service):
        with pytest.raises(UserNotFoundError):
            usuario_service.add_role("65f000000000000000000000", Role.ADOTANTE)
    
    def test_deactivate(self, usuario_service, administrador, make_usuario):
        usuario = make_usuario(Role.VOLUNTARIO)
        
        usuario_service.deactivate(usuario.id, administrador.id)
        
        assert usuario_service.get(usuario.id).ativo is False
    
    def test_deactivate_forbidden(self, usuario_service, make_usuario):
        actor = make_usuario(Role.FUNCIONARIO)
        usuario = make_usuario()
        
        with pytest.raises(ForbiddenError):
            usuario_service.deactivate(usuario.id, actor.id)


class TestProjetoService:
    """Test the project directory."""
    
    def test_create_requires_super_admin(self, projeto_service, administrador, projeto_request):
        with pytest.raises(ForbiddenError) as exc_info:
            projeto_service.create(projeto_request, administrador.id)
        
        assert exc_info.value.message == "Apenas SuperAdmin pode cadastrar projetos"
    
    def test_create(self, projeto_service, super_admin, projeto_request):
        projeto = projeto_service.create(projeto_request, super_admin.id)
        
        stored = projeto_service.get(projeto.id)
        assert stored.nome == "Abrigo Esperança"
        assert stored.telefone == "2133334444"
        assert stored.cep == "20000000"
        assert stored.uf == "RJ"
    
    def test_update_by_administrador(self, projeto_service, administrador, projeto):
        updated = projeto_service.update(
            projeto.id, UpdateProjetoRequest(instagram="@patasfelizes"), administrador.id
        )
        
        assert updated.instagram == "@patasfelizes"
        assert projeto_service.get(projeto.id).instagram == "@patasfelizes"
        assert projeto_service.get(projeto.id).nome == projeto.nome
    
    def test_update_unknown(self, projeto_service, super_admin):
        with pytest.raises(ProjectNotFoundError):
            projeto_service.update("65f000000000000000000000", UpdateProjetoRequest(nome="X"), super_admin.id)
    
    def test_deactivate(self, projeto_service, super_admin, projeto):
        projeto_service.deactivate(projeto.id, super_admin.id)
        
        assert projeto_service.get(projeto.id).ativo is False
    
    def test_list_for_super_admin_and_anonymous(self, projeto_service, super_admin, make_projeto):
        make_projeto()
        make_projeto()
        
        assert len(projeto_service.list_for(super_admin)) == 2
        assert len(projeto_service.list_for(None)) == 2
    
    def test_list_for_member(self, projeto_service, membership_service, super_admin,
                             make_usuario, make_projeto):
        member = make_usuario()
        joined = make_projeto()
        other = make_projeto()
        make_projeto()
        membership_service.grant(Role.VOLUNTARIO, member.id, joined.id, {}, super_admin.id)
        membership_service.grant(Role.DOADOR, member.id, other.id, {}, super_admin.id)
        
        member = membership_service.usuarios.get(member.id)
        visible = {projeto.id for projeto in projeto_service.list_for(member)}
        
        assert visible == {joined.id, other.id}
    
    def test_list_for_user_without_memberships(self, projeto_service, make_usuario, make_projeto):
        make_projeto()
        
        assert projeto_service.list_for(make_usuario(Role.ADOTANTE)) == []


class TestAdotanteService:
    """Test the adotante marker."""
    
    def test_grant_is_idempotent(self, adotante_service, usuario_service, make_usuario):
        usuario = make_usuario(Role.DOADOR)
        
        adotante_service.grant_adotante(usuario.id)
        adotante_service.grant_adotante(usuario.id)
        
        assert usuario_service.get(usuario.id).roles == [Role.DOADOR.value, Role.ADOTANTE.value]
    
    def test_revoke_is_idempotent(self, adotante_service, usuario_service, make_usuario):
        usuario = make_usuario(Role.ADOTANTE, Role.VOLUNTARIO)
        
        adotante_service.revoke_adotante(usuario.id)
        adotante_service.revoke_adotante(usuario.id)
        
        assert usuario_service.get(usuario.id).roles == [Role.VOLUNTARIO.value]

    def test_revoke_when_absent_still_persists(self, adotante_service, usuario_service,
                                               mongodb_service, make_usuario):
        usuario = make_usuario(Role.VOLUNTARIO)
        before = usuario_service.get(usuario.id).atualizado_em

        result = adotante_service.revoke_adotante(usuario.id)

        assert result.roles == [Role.VOLUNTARIO.value]
        assert usuario_service.get(usuario.id).atualizado_em >= before
        assert mongodb_service.get_collection("audit_logs").count_documents({"entity": "adotante"}) == 0

    def test_revoke_records_actor(self, adotante_service, mongodb_service, administrador, make_usuario):
        usuario = make_usuario(Role.ADOTANTE)

        adotante_service.revoke_adotante(usuario.id, administrador.id)

        entry = mongodb_service.get_collection("audit_logs").find_one({"entity": "adotante"})
        assert entry["user_id"] == administrador.id
        assert entry["entity_id"] == usuario.id

    def test_unknown_user(self, adotante_service):
        with pytest.raises(UserNotFoundError):
            adotante_service.grant_adotante("65f000000000000000000000")
