from __future__ import annotations

from django.db.models import QuerySet
from django.shortcuts import get_object_or_404

from .models import FormResponse, ResearchForm, ResearchProject


def owned_projects(user) -> QuerySet[ResearchProject]:
    if not user.is_authenticated:
        return ResearchProject.objects.none()
    return ResearchProject.objects.filter(owner=user)


def owned_forms(user) -> QuerySet[ResearchForm]:
    if not user.is_authenticated:
        return ResearchForm.objects.none()
    return ResearchForm.objects.filter(project__owner=user).select_related("project")


def owned_responses(user) -> QuerySet[FormResponse]:
    if not user.is_authenticated:
        return FormResponse.objects.none()
    return FormResponse.objects.filter(form__project__owner=user)


def get_project_or_404(user, pk) -> ResearchProject:
    # Other researchers' projects are indistinguishable from missing ones
    return get_object_or_404(owned_projects(user), pk=pk)


def get_form_or_404(user, pk) -> ResearchForm:
    return get_object_or_404(owned_forms(user), pk=pk)
