import json

from django.contrib.auth import get_user_model
import pytest

from conftest import TEST_PASSWORD, auth_header

User = get_user_model()


def _post(client, url, payload, **extra):
    return client.post(url, data=json.dumps(payload), content_type="application/json", **extra)


SIGNUP = {
    "email": "Gabriel@Example.com",
    "password": TEST_PASSWORD,
    "name": "Gabriel Tarde",
    "department": "Criminology",
    "university": "College de France",
}


@pytest.mark.django_db
class TestSignup:
    def test_signup_returns_user_and_tokens(self, client):
        resp = _post(client, "/api/auth/signup", SIGNUP)
        assert resp.status_code == 201, resp.content
        body = resp.json()
        assert body["user"]["email"] == "gabriel@example.com"
        assert body["user"]["profile"]["department"] == "Criminology"
        assert body["access"] and body["refresh"]
        assert User.objects.get().username == "gabriel@example.com"

    def test_email_pattern(self, client):
        resp = _post(client, "/api/auth/signup", {**SIGNUP, "email": "not an email"})
        assert resp.status_code == 400
        assert resp.json()["email"] == ["Please enter a valid email"]

    def test_dotless_domain_accepted(self, client):
        resp = _post(client, "/api/auth/signup", {**SIGNUP, "email": "gabriel@college"})
        assert resp.status_code == 201, resp.content

    def test_password_length(self, client):
        resp = _post(client, "/api/auth/signup", {**SIGNUP, "password": "x1!"})
        assert resp.status_code == 400
        assert resp.json()["password"] == ["Password must be at least 6 characters"]

    def test_profile_fields_required(self, client):
        payload = {k: v for k, v in SIGNUP.items() if k != "university"}
        resp = _post(client, "/api/auth/signup", payload)
        assert resp.status_code == 400
        assert "university" in resp.json()

    def test_duplicate_email(self, client, researcher):
        resp = _post(client, "/api/auth/signup", {**SIGNUP, "email": "EMILE@example.com"})
        assert resp.status_code == 400
        assert resp.json()["email"] == ["An account with this email already exists"]


@pytest.mark.django_db
class TestSigninAndSession:
    def test_signin_and_session(self, client, researcher):
        resp = _post(
            client,
            "/api/auth/signin",
            {"email": "Emile@example.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 200, resp.content
        access = resp.json()["access"]

        session = client.get("/api/auth/session", HTTP_AUTHORIZATION=f"Bearer {access}")
        assert session.json()["user"]["email"] == "emile@example.com"
        assert session.json()["user"]["profile"]["name"] == "Emile"

    def test_bad_credentials(self, client, researcher):
        resp = _post(client, "/api/auth/signin", {"email": "emile@example.com", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid email or password."

    def test_anonymous_session_is_null(self, client):
        assert client.get("/api/auth/session").json() == {"user": None}

    def test_repeated_failures_lock_out(self, client, researcher):
        for _ in range(5):
            _post(client, "/api/auth/signin", {"email": "emile@example.com", "password": "nope"})
        resp = _post(
            client,
            "/api/auth/signin",
            {"email": "emile@example.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code in (401, 403, 429)

    def test_signout_blacklists_refresh_token(self, client, researcher):
        tokens = _post(
            client, "/api/auth/signin", {"email": "emile@example.com", "password": TEST_PASSWORD}
        ).json()
        hdrs = {"HTTP_AUTHORIZATION": f"Bearer {tokens['access']}"}
        resp = _post(client, "/api/auth/signout", {"refresh": tokens["refresh"]}, **hdrs)
        assert resp.status_code == 205

        refresh = _post(client, "/api/token/refresh", {"refresh": tokens["refresh"]})
        assert refresh.status_code == 401


@pytest.mark.django_db
class TestProfileApi:
    def test_get_and_patch(self, client, researcher):
        hdrs = auth_header(client, "emile@example.com")
        resp = client.get("/api/profile", **hdrs)
        assert resp.json()["university"] == "Sorbonne"

        resp = client.patch(
            "/api/profile",
            data=json.dumps({"department": "Philosophy"}),
            content_type="application/json",
            **hdrs,
        )
        assert resp.status_code == 200
        assert resp.json()["department"] == "Philosophy"
        assert resp.json()["name"] == "Emile"

    def test_blank_field_rejected(self, client, researcher):
        hdrs = auth_header(client, "emile@example.com")
        resp = client.patch(
            "/api/profile",
            data=json.dumps({"name": " "}),
            content_type="application/json",
            **hdrs,
        )
        assert resp.status_code == 400
        assert resp.json() == {"name": ["Name is required"]}

    def test_requires_auth(self, client):
        assert client.get("/api/profile").status_code == 401
