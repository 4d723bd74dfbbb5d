"""Figures behind the dashboard and project pages.

Charts are drawn elsewhere; these helpers only return the numbers.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Iterable

from django.db.models import Count, QuerySet
from django.db.models.functions import TruncDate
from django.utils import timezone

from .models import FormResponse, ResearchForm, ResearchProject
from .permissions import owned_forms, owned_projects, owned_responses

TREND_DAYS = 7
TOP_FORMS = 5


def day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def responses_by_day(
    responses: QuerySet[FormResponse], days: int = TREND_DAYS, now: datetime | None = None
) -> list[dict[str, Any]]:
    """Daily response counts for the last ``days`` days, oldest first.

    Days without responses are present with a zero count.
    """
    today = timezone.localdate(now or timezone.now())
    start = today - timedelta(days=days - 1)
    counts = {
        row["day"]: row["count"]
        for row in responses.annotate(day=TruncDate("submitted_at"))
        .filter(day__gte=start, day__lte=today)
        .values("day")
        .annotate(count=Count("id"))
        .order_by()
    }
    series = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        series.append(
            {"date": day.isoformat(), "label": day_label(day), "count": counts.get(day, 0)}
        )
    return series


def status_breakdown(forms: Iterable[ResearchForm]) -> dict[str, int]:
    breakdown = {status: 0 for status in ResearchForm.Status.values}
    for form in forms:
        breakdown[form.status] += 1
    return breakdown


def with_response_counts(forms: QuerySet[ResearchForm]) -> QuerySet[ResearchForm]:
    return forms.annotate(response_count=Count("responses"))


def form_response_counts(
    forms: QuerySet[ResearchForm], limit: int = TOP_FORMS
) -> list[dict[str, Any]]:
    """Response totals for the most recent forms."""
    return [
        {"id": str(form.pk), "name": form.name, "count": form.response_count}
        for form in with_response_counts(forms).order_by("-created_at")[:limit]
    ]


def project_summary(project: ResearchProject) -> dict[str, int]:
    forms = project.forms.all()
    return {
        "forms": forms.count(),
        "active_forms": forms.filter(is_accepting_responses=True).count(),
        "responses": FormResponse.objects.filter(form__project=project).count(),
    }


def researcher_summary(user, now: datetime | None = None) -> dict[str, Any]:
    """Everything the dashboard shows for one researcher."""
    forms = owned_forms(user)
    responses = owned_responses(user)
    return {
        "totals": {
            "projects": owned_projects(user).count(),
            "forms": forms.count(),
            "active_forms": forms.filter(is_accepting_responses=True).count(),
            "responses": responses.count(),
        },
        "responses_by_day": responses_by_day(responses, now=now),
        "form_status": status_breakdown(forms),
        "form_responses": form_response_counts(forms),
    }
