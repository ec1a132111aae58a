"""HTTP tests for the auth blueprint, /me and health."""
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from api.config import validate_config
from models import storage
from models.refresh_session import RefreshSession

LOGIN_URL = "/api/v1/auth"
REFRESH_URL = "/api/v1/auth/refresh"
LOGOUT_URL = "/api/v1/auth/logout"


def _refresh_cookie(res):
    return next((c for c in res.headers.getlist("Set-Cookie") if c.startswith("refreshToken=")), None)


def _login(client, login="demo", password="demo"):
    return client.post(LOGIN_URL, json={"login": login, "password": password})


class TestLogin:
    def test_returns_access_token_and_http_only_cookie(self, client, demo_user):
        res = _login(client)

        assert res.status_code == 200
        assert res.get_json()["data"]["accessToken"]
        cookie = _refresh_cookie(res)
        assert cookie is not None
        assert "HttpOnly" in cookie
        assert "SameSite=Strict" in cookie

    def test_login_path_alias(self, client, demo_user):
        res = client.post("/api/v1/auth/login", json={"login": "demo", "password": "demo"})

        assert res.status_code == 200

    def test_refresh_token_is_not_in_body(self, client, demo_user):
        data = _login(client).get_json()["data"]

        assert set(data) == {"accessToken", "expiresAt"}

    def test_bad_credentials(self, client, demo_user):
        res = _login(client, "x", "wrong")

        assert res.status_code == 401
        body = res.get_json()
        assert body["error"] == "unauthorized"
        assert "data" not in body
        assert res.headers.getlist("Set-Cookie") == []
        assert storage.count(RefreshSession) == 0

    def test_wrong_password_for_known_user(self, client, demo_user):
        res = _login(client, "demo", "nope")

        assert res.status_code == 401
        assert _refresh_cookie(res) is None

    def test_empty_password(self, client, demo_user):
        res = _login(client, "demo", "")

        assert res.status_code == 400
        assert res.get_json()["message"] == "login and password are required"
        assert res.get_json()["error"] == "bad_request"

    def test_missing_body(self, client):
        res = client.post(LOGIN_URL)

        assert res.status_code == 400

    def test_non_string_login_is_rejected(self, client):
        res = client.post(LOGIN_URL, json={"login": 42, "password": "demo"})

        assert res.status_code == 422

    def test_second_login_replaces_session(self, client, demo_user, clock):
        first = _refresh_cookie(_login(client))
        clock.advance(1)
        second = _refresh_cookie(_login(client))

        assert first != second
        assert storage.count(RefreshSession) == 1

    def test_store_failure_is_internal_error(self, client, demo_user, lifecycle, monkeypatch):
        def failing_put(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        monkeypatch.setattr(lifecycle.store, "put", failing_put)
        res = _login(client)

        assert res.status_code == 500
        assert res.get_json()["error"] == "internal"
        assert "database is locked" not in res.get_data(as_text=True)
        assert _refresh_cookie(res) is None


class TestRefresh:
    def test_issues_new_access_token(self, client, demo_user, clock):
        _login(client)
        clock.advance(5)

        res = client.post(REFRESH_URL)

        assert res.status_code == 200
        assert res.get_json()["data"]["accessToken"]

    def test_without_cookie(self, client):
        res = client.post(REFRESH_URL)

        assert res.status_code == 401
        body = res.get_json()
        assert body["message"] == "refresh token is required"
        assert body["reason"] == "required"

    def test_unknown_token(self, client):
        client.set_cookie("refreshToken", "foo")

        res = client.post(REFRESH_URL)

        assert res.status_code == 401
        assert res.get_json()["message"] == "refresh token is not exist"
        assert res.get_json()["reason"] == "not_exist"

    def test_after_expiry(self, client, app, demo_user, clock):
        _login(client)
        clock.advance(app.config["REFRESH_TOKEN_TTL"].total_seconds() + 1)

        res = client.post(REFRESH_URL)

        assert res.status_code == 401
        assert res.get_json()["message"] == "refresh token is expired"
        assert res.get_json()["reason"] == "expired"

    def test_superseded_token_is_rejected(self, client, app, demo_user, clock):
        stale = _refresh_cookie(_login(client)).split(";")[0].split("=", 1)[1]
        clock.advance(1)
        _login(app.test_client())

        client.set_cookie("refreshToken", stale)
        res = client.post(REFRESH_URL)

        assert res.status_code == 401
        assert res.get_json()["reason"] == "not_exist"


class TestLogout:
    def test_clears_session_and_cookie(self, client, demo_user):
        _login(client)

        res = client.post(LOGOUT_URL)

        assert res.status_code == 204
        assert storage.count(RefreshSession) == 0
        assert client.post(REFRESH_URL).status_code == 401

    def test_without_session_is_noop(self, client):
        assert client.post(LOGOUT_URL).status_code == 204
        assert client.post(LOGOUT_URL).status_code == 204


class TestMe:
    def test_returns_principal_for_valid_access_token(self, client, demo_user):
        token = _login(client).get_json()["data"]["accessToken"]

        res = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})

        assert res.status_code == 200
        assert res.get_json()["data"] == {"login": "demo"}

    def test_missing_header(self, client):
        assert client.get("/api/v1/me").status_code == 401

    def test_expired_access_token(self, client, app, demo_user, clock):
        token = _login(client).get_json()["data"]["accessToken"]
        clock.advance(app.config["ACCESS_TOKEN_TTL"].total_seconds())

        res = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})

        assert res.status_code == 401

    def test_refresh_token_is_not_an_access_token(self, client, demo_user):
        refresh = _refresh_cookie(_login(client)).split(";")[0].split("=", 1)[1]

        res = client.get("/api/v1/me", headers={"Authorization": f"Bearer {refresh}"})

        assert res.status_code == 401

    def test_refreshed_token_is_accepted(self, client, app, demo_user, clock):
        _login(client)
        clock.advance(app.config["ACCESS_TOKEN_TTL"].total_seconds() + 1)
        token = client.post(REFRESH_URL).get_json()["data"]["accessToken"]

        res = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})

        assert res.status_code == 200


class TestHealthAndConfig:
    def test_health(self, client):
        res = client.get("/api/v1/health")

        assert res.status_code == 200
        assert res.get_json()["database"] == "ok"

    @pytest.mark.parametrize(
        "access,refresh",
        [(None, "r" * 40), ("a" * 40, None), ("same" * 10, "same" * 10)],
    )
    def test_secrets_are_required_and_distinct(self, access, refresh):
        config = {
            "ACCESS_TOKEN_SECRET": access,
            "REFRESH_TOKEN_SECRET": refresh,
            "ACCESS_TOKEN_TTL": timedelta(seconds=30),
            "REFRESH_TOKEN_TTL": timedelta(seconds=60),
        }

        with pytest.raises(RuntimeError):
            validate_config(config)

    def test_wildcard_cors_origin_is_refused(self):
        config = {
            "ACCESS_TOKEN_SECRET": "a" * 40,
            "REFRESH_TOKEN_SECRET": "r" * 40,
            "ACCESS_TOKEN_TTL": timedelta(seconds=30),
            "REFRESH_TOKEN_TTL": timedelta(seconds=60),
            "CORS_ORIGINS": ["http://localhost:1866", "*"],
        }

        with pytest.raises(RuntimeError):
            validate_config(config)

    def test_cors_credentials_only_for_configured_origin(self, client):
        allowed = client.get("/api/v1/health", headers={"Origin": "http://localhost:1866"})
        other = client.get("/api/v1/health", headers={"Origin": "http://evil.example"})

        assert allowed.headers.get("Access-Control-Allow-Origin") == "http://localhost:1866"
        assert allowed.headers.get("Access-Control-Allow-Credentials") == "true"
        assert "Access-Control-Allow-Origin" not in other.headers

    def test_add_user_command(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["add-user", "alice", "s3cret"])
        again = runner.invoke(args=["add-user", "alice", "s3cret"])

        assert result.exit_code == 0
        assert again.exit_code != 0
        assert app.extensions["token_lifecycle"].verifier.verify("alice", "s3cret")
