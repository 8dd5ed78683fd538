"""
Tests for the POST /delete-user endpoint.
"""

import pytest


class TestDeleteUser:
    """Tests for POST /delete-user endpoint."""

    def test_admin_deletes_user(self, client, mock_supabase_service, auth_headers):
        response = client.post("/delete-user", json={"userId": "user-42"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Usuário deletado com sucesso"}

        mock_supabase_service.get_auth_user.assert_called_once_with("test-jwt")
        mock_supabase_service.get_user_role.assert_called_once_with("admin-user")
        mock_supabase_service.delete_auth_user.assert_called_once_with("user-42")

    def test_sindico_deletes_user(self, client, mock_supabase_service, auth_headers):
        mock_supabase_service.get_user_role.return_value = "sindico"

        response = client.post("/delete-user", json={"userId": "user-42"}, headers=auth_headers)
        assert response.status_code == 200

    @pytest.mark.parametrize("role", ["morador", "conselheiro", None])
    def test_other_roles_forbidden(self, client, mock_supabase_service, auth_headers, role):
        mock_supabase_service.get_user_role.return_value = role

        response = client.post("/delete-user", json={"userId": "user-42"}, headers=auth_headers)
        assert response.status_code == 403
        assert response.json() == {"error": "Sem permissão (Apenas Admin/Síndico)"}
        mock_supabase_service.delete_auth_user.assert_not_called()

    def test_missing_token(self, client, mock_supabase_service):
        response = client.post("/delete-user", json={"userId": "user-42"})
        assert response.status_code == 400
        assert response.json() == {"error": "Não autenticado"}
        mock_supabase_service.get_auth_user.assert_not_called()

    def test_invalid_token(self, client, mock_supabase_service, auth_headers):
        mock_supabase_service.get_auth_user.return_value = None

        response = client.post("/delete-user", json={"userId": "user-42"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Não autenticado"}

    def test_missing_user_id(self, client, mock_supabase_service, auth_headers):
        response = client.post("/delete-user", json={}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "ID do usuário não fornecido"}
        mock_supabase_service.delete_auth_user.assert_not_called()

    def test_backend_error_message_is_returned(self, client, mock_supabase_service, auth_headers):
        class AuthApiError(Exception):
            message = "User not found"

        mock_supabase_service.delete_auth_user.side_effect = AuthApiError("404")

        response = client.post("/delete-user", json={"userId": "ghost"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "User not found"}
