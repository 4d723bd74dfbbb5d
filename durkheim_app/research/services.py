"""Form lifecycle operations shared by the builder pages and the API."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from django.db import transaction

from .models import ResearchForm, ResearchProject
from .schema import (
    SurveySchemaError,
    build_survey_json,
    default_questions,
    normalize_survey,
)

logger = logging.getLogger(__name__)


def create_form(
    project: ResearchProject,
    *,
    name: str,
    description: str = "",
    survey_json: Any = None,
    consent_required: bool = True,
    is_public: bool = False,
    is_accepting_responses: bool = False,
) -> ResearchForm:
    """Create a form; without a survey definition it starts with the sample question."""
    if survey_json in (None, {}):
        survey = build_survey_json(name, description, default_questions())
    else:
        survey = normalize_survey(survey_json)
    form = ResearchForm.objects.create(
        project=project,
        name=name,
        description=description or "",
        survey_json=survey,
        consent_required=consent_required,
        is_public=is_public,
        is_accepting_responses=is_accepting_responses,
    )
    if form.is_public:
        form.ensure_public_link()
    logger.info("Created form %s in project %s", form.pk, project.pk)
    return form


@transaction.atomic
def save_form(
    project: ResearchProject,
    *,
    name: str,
    description: str = "",
    questions: Iterable[dict],
    publish: bool,
    form: ResearchForm | None = None,
    consent_required: bool | None = None,
) -> ResearchForm:
    """Save from the builder, either publishing or keeping a draft.

    Publishing opens the form to responses and assigns its public link.
    """
    name = (name or "").strip()
    questions = list(questions)
    if not name:
        raise SurveySchemaError("Please enter a form name")
    if not questions:
        raise SurveySchemaError("Please add at least one question")
    base = form.survey_json if form is not None else None
    survey = build_survey_json(name, description, questions, base=base)
    if form is None:
        form = ResearchForm(project=project)
    form.project = project
    form.name = name
    form.description = description or ""
    form.survey_json = survey
    form.is_public = publish
    form.is_accepting_responses = publish
    if consent_required is not None:
        form.consent_required = consent_required
    form.save()
    if publish:
        form.ensure_public_link()
        logger.info("Published form %s", form.pk)
    return form


def set_questions(form: ResearchForm, questions: list[dict]) -> ResearchForm:
    """Store a new question list, keeping the rest of the survey blob."""
    survey = build_survey_json(
        form.name, form.description, questions, base=form.survey_json
    )
    form.survey_json = survey
    form.save(update_fields=["survey_json", "updated_at"])
    return form
