"""Tests for the request authentication pipeline."""

import logging

import pytest

from hlpfl_forms.middleware import RouteClass, classify_route
from hlpfl_forms.security import SecurityPolicy


class TestClassifyRoute:
    """Tests for classify_route."""

    @pytest.mark.parametrize(
        "method,path,expected",
        [
            ("GET", "/", RouteClass.PASSTHROUGH),
            ("GET", "/docs", RouteClass.PASSTHROUGH),
            ("POST", "/api/submit/form_1_abc", RouteClass.PUBLIC),
            ("POST", "/api/auth/login", RouteClass.AUTH),
            ("POST", "/api/auth/register", RouteClass.AUTH),
            ("POST", "/api/auth/logout", RouteClass.AUTH),
            ("GET", "/api/auth/verify", RouteClass.AUTH),
            ("GET", "/api/csrf-token", RouteClass.CSRF_TOKEN),
            ("GET", "/api/forms", RouteClass.PROTECTED),
            ("GET", "/api/dashboard/stats", RouteClass.PROTECTED),
            ("GET", "/api/submit/form_1_abc", RouteClass.PROTECTED),
            ("POST", "/api/submit/", RouteClass.PROTECTED),
            ("POST", "/api/submit/a/b", RouteClass.PROTECTED),
            ("GET", "/api/auth/unknown", RouteClass.PROTECTED),
        ],
    )
    def test_classification(self, method, path, expected):
        route, _ = classify_route(method, path)
        assert route is expected

    def test_public_route_yields_form_id(self):
        assert classify_route("POST", "/api/submit/form_1_abc") == (
            RouteClass.PUBLIC,
            "form_1_abc",
        )


class TestAuthentication:
    """Tests for bearer-token enforcement on protected routes."""

    def test_missing_token(self, client):
        response = client.get("/api/forms")

        assert response.status_code == 401
        assert response.json() == {
            "error": "Authentication required",
            "message": "Please login to access this resource.",
        }
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_non_bearer_scheme(self, client):
        response = client.get("/api/forms", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert response.json()["error"] == "Authentication required"

    def test_invalid_token(self, client):
        response = client.get("/api/forms", headers={"Authorization": "Bearer not.a.token"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    def test_expired_token(self, client, auth_headers, clock, policy):
        clock.advance(policy.token_ttl_seconds)
        response = client.get("/api/forms", headers=auth_headers)

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    def test_valid_token(self, client, auth_headers):
        response = client.get("/api/forms", headers=auth_headers)
        assert response.status_code == 200

    def test_unknown_api_path_requires_auth(self, client):
        assert client.get("/api/nope").status_code == 401


class TestCsrf:
    """Tests for CSRF enforcement on mutating requests."""

    def test_post_without_csrf_header(self, client, auth_session):
        response = client.post(
            "/api/forms",
            json={"name": "Contact"},
            headers={"Authorization": f"Bearer {auth_session['token']}"},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "CSRF validation failed"

    def test_post_with_wrong_csrf_header(self, client, auth_session):
        response = client.post(
            "/api/forms",
            json={"name": "Contact"},
            headers={
                "Authorization": f"Bearer {auth_session['token']}",
                "X-CSRF-Token": "0" * 64,
            },
        )
        assert response.status_code == 403

    def test_post_with_csrf_header(self, client, auth_headers):
        response = client.post("/api/forms", json={"name": "Contact"}, headers=auth_headers)
        assert response.status_code == 201

    def test_expired_csrf_token(self, client, auth_headers, clock, policy):
        clock.advance(policy.csrf_ttl_seconds + 1)
        response = client.post("/api/forms", json={"name": "Contact"}, headers=auth_headers)
        assert response.status_code == 403

    def test_get_needs_no_csrf_header(self, client, auth_session):
        response = client.get(
            "/api/forms", headers={"Authorization": f"Bearer {auth_session['token']}"}
        )
        assert response.status_code == 200

    @pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
    def test_other_mutating_methods_need_csrf(self, client, auth_session, method):
        response = client.request(
            method,
            "/api/forms/form_1_abc",
            headers={"Authorization": f"Bearer {auth_session['token']}"},
        )
        assert response.status_code == 403

    def test_csrf_tokens_are_per_user(self, client, register_user):
        alice = register_user("alice")
        bob = register_user("bob")
        response = client.post(
            "/api/forms",
            json={"name": "Contact"},
            headers={
                "Authorization": f"Bearer {alice['token']}",
                "X-CSRF-Token": bob["csrfToken"],
            },
        )
        assert response.status_code == 403

    def test_not_enforced_under_enhanced_preset(self, app_factory):
        client = app_factory(SecurityPolicy.enhanced())
        token = client.post(
            "/api/auth/register",
            json={"username": "alice", "password": "Str0ng!Passw0rd", "email": "a@example.com"},
        ).json()["token"]

        response = client.post(
            "/api/forms", json={"name": "Contact"}, headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 201


class TestPipeline:
    """Tests for preflight, health, 404 and 500 handling."""

    def test_options_preflight(self, client):
        response = client.options("/api/forms")

        assert response.status_code == 204
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Access-Control-Allow-Headers"] == (
            "Content-Type, Authorization, X-CSRF-Token"
        )

    def test_health_without_auth(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["security"] == "enhanced"
        assert "X-RateLimit-Limit" not in response.headers

    def test_unknown_route_returns_404_envelope(self, client, auth_headers):
        response = client.get("/api/nope", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {
            "error": "Endpoint not found",
            "message": "The requested endpoint does not exist.",
        }

    def test_non_api_route_returns_404_envelope(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json()["error"] == "Endpoint not found"

    def test_handler_exception_returns_generic_500(self, app, client, auth_headers, caplog):
        async def explode():
            raise RuntimeError("database password is hunter2")

        app.add_api_route("/api/explode", explode, methods=["GET"])

        with caplog.at_level(logging.ERROR):
            response = client.get("/api/explode", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again.",
        }
        assert "hunter2" not in response.text
        assert response.headers["X-Frame-Options"] == "DENY"
        assert any("Unhandled error" in r.getMessage() for r in caplog.records)

    def test_requests_are_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="hlpfl_forms.middleware.auth"):
            client.get("/api/forms", headers={"X-Forwarded-For": "198.51.100.4"})

        records = [r for r in caplog.records if getattr(r, "path", None) == "/api/forms"]
        assert records
        record = records[-1]
        assert record.method == "GET"
        assert record.status == 401
        assert record.client_id == "198.51.100.4"
        assert record.duration_ms >= 0
