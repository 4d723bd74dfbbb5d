from django.contrib.auth import get_user_model
from django.template.loader import get_template
from django.urls import reverse
import pytest

User = get_user_model()


def test_api_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.django_db
def test_openapi_schema_available(client):
    resp = client.get("/api/schema?format=openapi-json")
    assert resp.status_code == 200
    assert "openapi" in resp.json()


@pytest.mark.django_db
def test_home_redirect_and_render(client):
    resp = client.get("/")
    assert resp.status_code == 302
    resp = client.get(resp.url)
    assert resp.status_code == 200
    assert b"Durkheim Intelligence" in resp.content


@pytest.mark.django_db
def test_dashboard_page(client, researcher, live_form):
    client.force_login(researcher)
    resp = client.get("/dashboard/")
    assert resp.status_code == 200
    assert resp.context["summary"]["totals"]["forms"] == 1


@pytest.mark.django_db
def test_logout(client, researcher):
    client.force_login(researcher)
    resp = client.post(reverse("logout"))
    assert resp.status_code == 302
    assert "_auth_user_id" not in client.session


@pytest.mark.django_db
def test_404_page_uses_template(client, researcher):
    client.force_login(researcher)
    resp = client.get("/research/projects/999999/")
    assert resp.status_code == 404
    assert b"Not found" in resp.content


def test_error_templates_exist():
    for name in ("403.html", "404.html", "500.html"):
        assert get_template(name) is not None


@pytest.mark.django_db
class TestAdminSuperuserOnly:
    def test_staff_but_not_superuser_blocked(self, client):
        user = User.objects.create_user(
            username="staff", email="s@example.com", password="StrongPass!234"
        )
        user.is_staff = True
        user.save()
        client.force_login(user)
        resp = client.get(reverse("admin:index"))
        assert resp.status_code in (302, 403)

    def test_superuser_allowed(self, client):
        root = User.objects.create_superuser("root", "root@example.com", "StrongPass!234")
        client.force_login(root)
        resp = client.get(reverse("admin:index"))
        assert resp.status_code == 200
        assert b"Durkheim Intelligence Admin" in resp.content
        assert b"Researchers, projects and forms" in resp.content
        assert b'href="/dashboard/"' in resp.content
