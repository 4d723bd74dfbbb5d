from datetime import datetime, timedelta, timezone as dt_timezone

import pytest

from durkheim_app.research.models import FormResponse, ResearchProject
from durkheim_app.research.services import create_form
from durkheim_app.research.stats import (
    day_label,
    project_summary,
    researcher_summary,
    responses_by_day,
)

NOW = datetime(2025, 10, 9, 15, 0, tzinfo=dt_timezone.utc)


def test_day_label():
    assert day_label(NOW.date()) == "Oct 9"


@pytest.mark.django_db
class TestStats:
    def test_responses_by_day_zero_filled(self, live_form):
        for days_ago in (0, 0, 2, 10):
            FormResponse.objects.create(
                form=live_form,
                response_data={},
                submitted_at=NOW - timedelta(days=days_ago),
            )
        series = responses_by_day(FormResponse.objects.all(), now=NOW)
        assert len(series) == 7
        assert series[0]["date"] == "2025-10-03"
        assert series[-1] == {"date": "2025-10-09", "label": "Oct 9", "count": 2}
        assert [d["count"] for d in series] == [0, 0, 0, 0, 1, 0, 2]

    def test_project_summary(self, live_form, project):
        create_form(project, name="Draft")
        FormResponse.objects.create(form=live_form, response_data={})
        assert project_summary(project) == {"forms": 2, "active_forms": 1, "responses": 1}

    def test_researcher_summary_only_counts_own_data(
        self, live_form, project, other_researcher
    ):
        closed = create_form(project, name="Closed", is_public=True)
        create_form(project, name="Draft")
        FormResponse.objects.create(form=live_form, response_data={}, submitted_at=NOW)

        foreign_project = ResearchProject.objects.create(owner=other_researcher, name="Theirs")
        foreign = create_form(foreign_project, name="Foreign", is_public=True)
        foreign.publish()
        FormResponse.objects.create(form=foreign, response_data={}, submitted_at=NOW)

        summary = researcher_summary(project.owner, now=NOW)
        assert summary["totals"] == {
            "projects": 1,
            "forms": 3,
            "active_forms": 1,
            "responses": 1,
        }
        assert summary["form_status"] == {"active": 1, "completed": 1, "draft": 1}
        assert summary["responses_by_day"][-1]["count"] == 1
        names = {row["name"]: row["count"] for row in summary["form_responses"]}
        assert names == {"Cohesion survey": 1, closed.name: 0, "Draft": 0}

    def test_researcher_summary_for_new_account(self, other_researcher):
        summary = researcher_summary(other_researcher, now=NOW)
        assert summary["totals"]["projects"] == 0
        assert all(day["count"] == 0 for day in summary["responses_by_day"])
