import json
import uuid

import pytest

from durkheim_app.research.models import FormResponse
from durkheim_app.research.services import create_form


def _submit(client, form_id, payload, **hdrs):
    return client.post(
        f"/api/public/forms/{form_id}",
        data=json.dumps(payload),
        content_type="application/json",
        **hdrs,
    )


@pytest.mark.django_db
class TestPublicFormApi:
    def test_get_live_form(self, client, live_form):
        resp = client.get(f"/api/public/forms/{live_form.pk}")
        assert resp.status_code == 200
        body = resp.json()
        assert body["name"] == "Cohesion survey"
        assert body["consent_required"] is False
        assert [q["id"] for q in body["questions"]] == ["q1", "q2", "q3", "q4"]
        assert "project" not in body

    def test_non_live_forms_are_404(self, client, project):
        draft = create_form(project, name="Draft")
        resp = client.get(f"/api/public/forms/{draft.pk}")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Form not found or no longer accepting responses"
        resp = client.get(f"/api/public/forms/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Form not found or no longer accepting responses"
        resp = _submit(client, uuid.uuid4(), {"answers": {}})
        assert resp.json()["detail"] == "Form not found or no longer accepting responses"

    def test_submit(self, client, live_form):
        resp = _submit(
            client,
            live_form.pk,
            {"answers": {"q1": "Emile", "q2": ["English"], "q3": 3}},
        )
        assert resp.status_code == 201, resp.content
        stored = FormResponse.objects.get(pk=resp.json()["id"])
        assert stored.response_data == {
            "Your name": "Emile",
            "Languages": ["English"],
            "Satisfaction": 3,
        }

    def test_validation_errors_keyed_by_question(self, client, live_form):
        resp = _submit(client, live_form.pk, {"answers": {"q3": 9, "q4": "Atheist"}})
        assert resp.status_code == 400
        errors = resp.json()
        assert errors["q1"] == ["This question is required."]
        assert errors["q4"] == ["Invalid choice: Atheist"]
        assert "q3" in errors

    def test_consent(self, client, live_form):
        live_form.consent_required = True
        live_form.save()
        resp = _submit(client, live_form.pk, {"answers": {"q1": "Emile"}})
        assert resp.json() == {"consent": ["Please provide consent to participate in this research."]}
        resp = _submit(client, live_form.pk, {"answers": {"q1": "Emile"}, "consent": True})
        assert resp.status_code == 201

    def test_new_forms_require_consent(self, client, project):
        form = create_form(project, name="Defaults")
        form.publish()
        assert client.get(f"/api/public/forms/{form.pk}").json()["consent_required"] is True
        resp = _submit(client, form.pk, {"answers": {}})
        assert resp.status_code == 400
        assert "consent" in resp.json()
        assert not FormResponse.objects.exists()

    def test_closed_form_refuses(self, client, live_form):
        live_form.close()
        resp = _submit(client, live_form.pk, {"answers": {"q1": "Emile"}})
        assert resp.status_code == 404
        assert not FormResponse.objects.exists()

    def test_bad_token_is_ignored(self, client, live_form):
        resp = _submit(
            client,
            live_form.pk,
            {"answers": {"q1": "Emile"}},
            HTTP_AUTHORIZATION="Bearer not.a.token",
        )
        assert resp.status_code == 201
