"""
Tests for app-wide behavior: health, CORS and the error body shape.
"""


class TestHealth:
    """Tests for /health endpoint."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "version" in data


class TestCors:
    """Preflight requests are answered for every handler."""

    def test_preflight_allows_client_headers(self, client):
        response = client.options(
            "/ask-ai",
            headers={
                "Origin": "https://app.versix.com.br",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, x-client-info, apikey, content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        allowed = response.headers["access-control-allow-headers"].lower()
        for header in ("authorization", "x-client-info", "apikey", "content-type"):
            assert header in allowed

    def test_simple_request_carries_origin_header(self, client):
        response = client.get("/health", headers={"Origin": "https://app.versix.com.br"})
        assert response.headers["access-control-allow-origin"] == "*"


class TestErrorShape:
    """Every failure is rendered as {"error": message}."""

    def test_validation_error_is_400(self, client):
        response = client.post("/financial-health-check", json={})
        assert response.status_code == 400
        assert "condominio_id" in response.json()["error"]

    def test_invalid_json_is_400(self, client):
        response = client.post(
            "/delete-user",
            content=b"not json",
            headers={"Content-Type": "application/json", "Authorization": "Bearer x"},
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_unsupported_method(self, client, auth_headers):
        response = client.patch("/admin-ai-faqs", json={}, headers=auth_headers)
        assert response.status_code == 405
        assert response.json() == {"error": "Método não suportado"}

    def test_unknown_route(self, client):
        response = client.get("/does-not-exist")
        assert response.status_code == 404
        assert "error" in response.json()


class TestBearerToken:
    """Tests for Authorization header parsing."""

    def test_bearer(self):
        from api.main import bearer_token

        assert bearer_token("Bearer abc.def") == "abc.def"
        assert bearer_token("bearer abc") == "abc"

    def test_missing_or_malformed(self):
        from api.main import bearer_token

        assert bearer_token(None) is None
        assert bearer_token("") is None
        assert bearer_token("Basic abc") is None
        assert bearer_token("Bearer ") is None
