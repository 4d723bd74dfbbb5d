import json

from django.core.cache import cache
import pytest

from durkheim_app.core.accounts import create_account
from durkheim_app.research.models import ResearchProject
from durkheim_app.research.services import create_form

TEST_PASSWORD = "Str0ng-Pass!234"


@pytest.fixture(autouse=True)
def clear_cache_between_tests():
    """Rate limits and throttles live in the cache; start every test fresh."""
    cache.clear()
    yield
    cache.clear()


def make_researcher(email: str, name: str = "Researcher"):
    return create_account(
        email=email,
        password=TEST_PASSWORD,
        name=name,
        department="Sociology",
        university="Sorbonne",
    )


@pytest.fixture
def researcher(db):
    return make_researcher("emile@example.com", name="Emile")


@pytest.fixture
def other_researcher(db):
    return make_researcher("marcel@example.com", name="Marcel")


@pytest.fixture
def project(researcher):
    return ResearchProject.objects.create(
        owner=researcher, name="Suicide study", description="Rates by region"
    )


SAMPLE_QUESTIONS = [
    {"id": "q1", "type": "text", "title": "Your name", "required": True},
    {
        "id": "q2",
        "type": "checkbox",
        "title": "Languages",
        "options": ["French", "German", "English"],
    },
    {"id": "q3", "type": "rating", "title": "Satisfaction", "required": False},
    {"id": "q4", "type": "radio", "title": "Faith", "options": ["Catholic", "Protestant"]},
]


@pytest.fixture
def live_form(project):
    form = create_form(
        project,
        name="Cohesion survey",
        survey_json={"title": "Cohesion survey", "questions": SAMPLE_QUESTIONS},
        consent_required=False,
    )
    form.publish()
    return form


def auth_header(client, username: str, password: str = TEST_PASSWORD) -> dict:
    """JWT bearer header for the given account."""
    resp = client.post(
        "/api/token",
        data=json.dumps({"username": username, "password": password}),
        content_type="application/json",
    )
    assert resp.status_code == 200, resp.content
    return {"HTTP_AUTHORIZATION": f"Bearer {resp.json()['access']}"}
