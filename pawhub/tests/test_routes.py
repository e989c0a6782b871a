# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the HTTP endpoints through the Flask test client.
"""

import pytest
from unittest.mock import patch

from pawhub.models.entities import Usuario
from pawhub.models.enums import Role


class TestMembershipEndpoints:
    """Test the per-role membership endpoints."""
    
    def test_grant_with_token(self, client, auth_header, administrador, make_usuario, projeto):
        target = make_usuario()
        
        response = client.post(
            '/api/funcionarios',
            json={"id_usuario": target.id, "id_projeto": projeto.id, "funcao": "Tratador"},
            headers=auth_header(administrador)
        )
        
        assert response.status_code == 201
        body = response.get_json()
        assert body["success"] is True
        assert body["message"] == "Funcionário cadastrado com sucesso"
        assert body["data"]["privilegios"] is False
        assert body["data"]["funcao"] == "Tratador"
    
    def test_grant_with_matching_performado_por(self, client, auth_header, super_admin, make_usuario, projeto):
        target = make_usuario()
        
        response = client.post('/api/doadores', json={
            "id_usuario": target.id,
            "id_projeto": projeto.id,
            "frequencia": "MENSAL",
            "performado_por": super_admin.id
        }, headers=auth_header(super_admin))
        
        assert response.status_code == 201
        assert response.get_json()["data"]["frequencia"] == "mensal"
    
    def test_anonymous_grant_is_rejected(self, client, membership_service, super_admin, make_usuario, projeto):
        target = make_usuario()
        
        response = client.post('/api/administradores', json={
            "id_usuario": target.id, "id_projeto": projeto.id, "performado_por": super_admin.id
        })
        
        assert response.status_code == 401
        assert response.get_json()["error"] == "Token não fornecido"
        assert membership_service.list_all(Role.ADMINISTRADOR) == []
    
    def test_performado_por_cannot_impersonate(self, client, auth_header, super_admin, make_usuario, projeto):
        actor = make_usuario(Role.VOLUNTARIO)
        target = make_usuario()
        
        response = client.post('/api/funcionarios', json={
            "id_usuario": target.id, "id_projeto": projeto.id, "performado_por": super_admin.id
        }, headers=auth_header(actor))
        
        assert response.status_code == 403
    
    def test_grant_forbidden(self, client, auth_header, make_usuario, projeto):
        actor = make_usuario(Role.VOLUNTARIO)
        target = make_usuario()
        
        response = client.post('/api/funcionarios', json={
            "id_usuario": target.id, "id_projeto": projeto.id
        }, headers=auth_header(actor))
        
        assert response.status_code == 403
        assert response.get_json() == {
            "success": False,
            "error": "Apenas SuperAdmin ou Administrador podem cadastrar funcionários",
            "type": "insufficient-permissions"
        }
    
    def test_grant_missing_identifiers(self, client, auth_header, super_admin):
        response = client.post('/api/voluntarios', json={}, headers=auth_header(super_admin))
        
        assert response.status_code == 400
        assert response.get_json()["type"] == "validation-error"
    
    def test_grant_unknown_actor(self, client, auth_header, make_usuario, projeto):
        target = make_usuario()
        ghost = Usuario(nome="Fantasma", email="fantasma@example.com", cpf="00000000000")
        
        response = client.post('/api/doadores', json={
            "id_usuario": target.id, "id_projeto": projeto.id
        }, headers=auth_header(ghost))
        
        assert response.status_code == 404
        assert response.get_json()["type"] == "actor-not-found"
    
    def test_double_grant_conflict(self, client, auth_header, super_admin, make_usuario, projeto):
        target = make_usuario()
        payload = {"id_usuario": target.id, "id_projeto": projeto.id}
        
        assert client.post('/api/doadores', json=payload, headers=auth_header(super_admin)).status_code == 201
        response = client.post('/api/doadores', json=payload, headers=auth_header(super_admin))
        
        assert response.status_code == 409
        assert response.get_json()["error"] == "Usuário já está cadastrado como doador neste projeto"
    
    def test_reads(self, client, membership_service, super_admin, make_usuario, projeto):
        target = make_usuario()
        membership_service.grant(Role.VOLUNTARIO, target.id, projeto.id, {"servico": "Banho"}, super_admin.id)
        
        listed = client.get('/api/voluntarios').get_json()["data"]
        by_projeto = client.get(f'/api/voluntarios/projeto/{projeto.id}').get_json()["data"]
        by_usuario = client.get(f'/api/voluntarios/usuario/{target.id}').get_json()["data"]
        single = client.get(f'/api/voluntarios/{target.id}/{projeto.id}').get_json()["data"]
        
        assert len(listed) == len(by_projeto) == len(by_usuario) == 1
        assert single["servico"] == "Banho"
    
    def test_get_missing(self, client, make_usuario, projeto):
        target = make_usuario()
        
        response = client.get(f'/api/administradores/{target.id}/{projeto.id}')
        
        assert response.status_code == 404
        assert response.get_json()["error"] == "Administrador não encontrado"
    
    def test_update(self, client, auth_header, membership_service, super_admin, make_usuario, projeto):
        target = make_usuario()
        membership_service.grant(Role.DOADOR, target.id, projeto.id, {"observacao": "Ração"}, super_admin.id)
        
        response = client.patch(
            f'/api/doadores/{target.id}/{projeto.id}',
            json={"dt_lembrete": "2025-06-01"},
            headers=auth_header(super_admin)
        )
        
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["dt_lembrete"] == "2025-06-01"
        assert data["observacao"] == "Ração"
    
    def test_privilegios_endpoints(self, client, auth_header, membership_service, administrador,
                                   make_usuario, projeto):
        target = make_usuario()
        membership_service.grant(Role.FUNCIONARIO, target.id, projeto.id, {}, administrador.id)
        url = f'/api/funcionarios/{target.id}/{projeto.id}'
        
        granted = client.patch(f'{url}/conceder-privilegios', headers=auth_header(administrador))
        removed = client.patch(f'{url}/remover-privilegios', headers=auth_header(administrador))
        anonymous = client.patch(f'{url}/conceder-privilegios')
        
        assert granted.get_json()["data"]["privilegios"] is True
        assert removed.get_json()["data"]["privilegios"] is False
        assert anonymous.status_code == 401
    
    def test_revoke(self, client, auth_header, membership_service, usuario_service, super_admin,
                    make_usuario, projeto):
        target = make_usuario()
        membership_service.grant(Role.FUNCIONARIO, target.id, projeto.id, {}, super_admin.id)
        
        response = client.delete(
            f'/api/funcionarios/{target.id}/{projeto.id}',
            headers=auth_header(super_admin)
        )
        
        assert response.status_code == 200
        assert response.get_json()["message"] == "Funcionário removido com sucesso"
        assert membership_service.list_all(Role.FUNCIONARIO) == []
        assert Role.FUNCIONARIO.value in usuario_service.get(target.id).roles
    
    def test_invalid_token(self, client, make_usuario, projeto):
        target = make_usuario()
        
        response = client.post(
            '/api/doadores',
            json={"id_usuario": target.id, "id_projeto": projeto.id},
            headers={"Authorization": "Bearer not-a-jwt"}
        )
        
        assert response.status_code == 401


class TestUsuarioEndpoints:
    """Test user directory endpoints."""
    
    def test_register_and_get(self, client):
        response = client.post('/api/usuarios', json={
            "nome": "Joana", "email": "joana@example.com", "cpf": "111.222.333-44"
        })
        
        assert response.status_code == 201
        usuario_id = response.get_json()["data"]["id"]
        
        fetched = client.get(f'/api/usuarios/{usuario_id}').get_json()["data"]
        assert fetched["cpf"] == "11122233344"
        assert fetched["roles"] == []
    
    def test_register_rejects_scoped_roles(self, client, usuario_service):
        response = client.post('/api/usuarios', json={
            "nome": "Intrusa", "email": "intrusa@example.com", "cpf": "55566677788",
            "roles": ["Administrador"]
        })
        
        assert response.status_code == 400
        assert response.get_json()["type"] == "validation-error"
        assert usuario_service.find_by_email("intrusa@example.com") is None
    
    def test_register_as_adotante(self, client):
        response = client.post('/api/usuarios', json={
            "nome": "Bia", "email": "bia@example.com", "cpf": "12312312312", "roles": ["Adotante"]
        })
        
        assert response.status_code == 201
        assert response.get_json()["data"]["roles"] == [Role.ADOTANTE.value]
    
    def test_register_duplicate(self, client, make_usuario):
        existing = make_usuario()
        
        response = client.post('/api/usuarios', json={
            "nome": "Outra", "email": existing.email, "cpf": "99988877766"
        })
        
        assert response.status_code == 409
    
    def test_list_with_role_filter(self, client, make_usuario):
        make_usuario(Role.DOADOR)
        make_usuario()
        
        assert len(client.get('/api/usuarios?role=Doador').get_json()["data"]) == 1
        assert client.get('/api/usuarios?role=Gerente').status_code == 400
    
    def test_update_own_profile(self, client, auth_header, make_usuario):
        usuario = make_usuario()
        
        response = client.patch(
            f'/api/usuarios/{usuario.id}', json={"nome": "Novo Nome"}, headers=auth_header(usuario)
        )
        
        assert response.status_code == 200
        assert response.get_json()["data"]["nome"] == "Novo Nome"
    
    def test_update_profile_requires_token(self, client, make_usuario):
        usuario = make_usuario()
        
        response = client.patch(f'/api/usuarios/{usuario.id}', json={"nome": "Anônimo"})
        
        assert response.status_code == 401
    
    def test_update_other_profile_forbidden(self, client, auth_header, make_usuario):
        usuario = make_usuario()
        other = make_usuario(Role.VOLUNTARIO)
        
        response = client.patch(
            f'/api/usuarios/{usuario.id}', json={"nome": "Outro"}, headers=auth_header(other)
        )
        
        assert response.status_code == 403
    
    def test_promote(self, client, auth_header, super_admin, make_usuario):
        target = make_usuario()
        
        response = client.patch(f'/api/usuarios/{target.id}/promover-superadmin', headers=auth_header(super_admin))
        
        assert response.status_code == 200
        assert Role.SUPER_ADMIN.value in response.get_json()["data"]["roles"]
    
    def test_promote_forbidden_for_administrador(self, client, auth_header, administrador, make_usuario):
        target = make_usuario()
        
        response = client.patch(
            f'/api/usuarios/{target.id}/promover-superadmin',
            headers=auth_header(administrador)
        )
        
        assert response.status_code == 403
    
    def test_deactivate(self, client, auth_header, administrador, make_usuario):
        target = make_usuario()
        
        response = client.delete(f'/api/usuarios/{target.id}', headers=auth_header(administrador))
        
        assert response.status_code == 200
        assert response.get_json()["data"]["ativo"] is False


class TestProjetoAndAdotanteEndpoints:
    """Test project and adopter endpoints."""
    
    def test_create_projeto(self, client, auth_header, super_admin):
        response = client.post('/api/projetos', json={
            "nome": "Abrigo Novo",
            "email": "abrigo@example.org",
            "telefone": "11 3000-0000",
            "cep": "01310-100",
            "uf": "SP",
            "cidade": "São Paulo",
            "bairro": "Bela Vista"
        }, headers=auth_header(super_admin))
        
        assert response.status_code == 201
        assert response.get_json()["data"]["cep"] == "01310100"
    
    def test_create_projeto_requires_token(self, client, super_admin):
        response = client.post('/api/projetos', json={
            "nome": "Abrigo Anônimo",
            "email": "anonimo@example.org",
            "telefone": "11 3000-0001",
            "cep": "01310-100",
            "uf": "SP",
            "cidade": "São Paulo",
            "bairro": "Bela Vista",
            "performado_por": super_admin.id
        })
        
        assert response.status_code == 401
    
    def test_list_projetos_for_member(self, client, auth_header, membership_service, super_admin,
                                      make_usuario, make_projeto):
        member = make_usuario()
        joined = make_projeto()
        make_projeto()
        membership_service.grant(Role.FUNCIONARIO, member.id, joined.id, {}, super_admin.id)
        
        scoped = client.get('/api/projetos', headers=auth_header(member)).get_json()["data"]
        everything = client.get('/api/projetos').get_json()["data"]
        
        assert [projeto["id"] for projeto in scoped] == [joined.id]
        assert len(everything) == 2
    
    def test_get_projeto_missing(self, client):
        response = client.get('/api/projetos/65f000000000000000000000')
        
        assert response.status_code == 404
        assert response.get_json()["error"] == "Projeto não encontrado"
    
    def test_adotante_toggle(self, client, auth_header, make_usuario):
        usuario = make_usuario()
        
        granted = client.post('/api/adotantes', json={"id_usuario": usuario.id})
        again = client.post('/api/adotantes', json={"id_usuario": usuario.id})
        anonymous = client.delete(f'/api/adotantes/{usuario.id}')
        revoked = client.delete(f'/api/adotantes/{usuario.id}', headers=auth_header(usuario))
        
        assert granted.status_code == again.status_code == 201
        assert again.get_json()["data"]["roles"] == [Role.ADOTANTE.value]
        assert anonymous.status_code == 401
        assert revoked.get_json()["data"]["roles"] == []


class TestHealthEndpoint:
    
    def test_healthy(self, client, app):
        with patch.object(app.mongodb_service, 'health_check', return_value={'status': 'healthy'}):
            response = client.get('/api/healthz')
        
        assert response.status_code == 200
        assert response.get_json()["service"] == "pawhub-api"
    
    def test_unhealthy(self, client, app):
        with patch.object(app.mongodb_service, 'health_check', return_value={'status': 'unhealthy'}):
            response = client.get('/api/healthz')
        
        assert response.status_code == 503
