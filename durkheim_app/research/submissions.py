"""Respondent submissions: answer validation and response storage."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .models import FormResponse, ResearchForm
from .schema import RATING_SCALE, QuestionType, is_choice_type

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This question is required."
CONSENT_MESSAGE = "Please provide consent to participate in this research."
UNAVAILABLE_MESSAGE = "Form not found or no longer accepting responses"


class SubmissionRejected(Exception):
    """The submission cannot be stored; ``errors`` maps field -> message.

    Question problems are keyed by question id; form-wide problems use
    ``"consent"`` or ``"__all__"``.
    """

    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


class FormUnavailable(SubmissionRejected):
    def __init__(self):
        super().__init__({"__all__": UNAVAILABLE_MESSAGE})


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def clean_answers(
    questions: list[dict], raw_answers: Mapping[str, Any]
) -> tuple[dict[str, Any], dict[str, str]]:
    """Turn raw answers keyed by question id into ``response_data``.

    Returns the data keyed by question title plus a map of errors keyed by
    question id. Empty answers are left out of the data.
    """
    data: dict[str, Any] = {}
    errors: dict[str, str] = {}
    for question in questions:
        qid = str(question.get("id"))
        qtype = question.get("type")
        options = question.get("options") or []
        raw = raw_answers.get(qid)

        if qtype == QuestionType.CHECKBOX:
            values = raw if isinstance(raw, (list, tuple)) else [raw]
            values = [v for v in (_as_text(v) for v in values) if v]
            if not values:
                if question.get("required"):
                    errors[qid] = REQUIRED_MESSAGE
                continue
            invalid = [v for v in values if v not in options]
            if invalid:
                errors[qid] = f"Invalid choice: {invalid[0]}"
                continue
            data[question["title"]] = values
            continue

        if isinstance(raw, (list, tuple)):
            errors[qid] = "Expected a single answer."
            continue
        value = _as_text(raw)
        if not value:
            if question.get("required"):
                errors[qid] = REQUIRED_MESSAGE
            continue
        if is_choice_type(qtype) and value not in options:
            errors[qid] = f"Invalid choice: {value}"
            continue
        if qtype == QuestionType.RATING:
            try:
                rating = int(value)
            except ValueError:
                rating = None
            if rating not in RATING_SCALE:
                errors[qid] = (
                    f"Rating must be between {RATING_SCALE[0]} and {RATING_SCALE[-1]}."
                )
                continue
            data[question["title"]] = rating
            continue
        data[question["title"]] = value
    return data, errors


def record_response(
    form: ResearchForm, raw_answers: Mapping[str, Any], *, consent_given: bool = False
) -> FormResponse:
    """Validate and store one respondent's answers for a live form."""
    if not form.is_live():
        logger.warning("Rejected submission to closed form %s", form.pk)
        raise FormUnavailable()
    data, errors = clean_answers(form.questions, raw_answers)
    if form.consent_required and not consent_given:
        errors = {"consent": CONSENT_MESSAGE, **errors}
    if errors:
        logger.info("Submission to form %s failed validation: %s", form.pk, sorted(errors))
        raise SubmissionRejected(errors)
    response = FormResponse.objects.create(form=form, response_data=data)
    logger.info("Stored response %s for form %s", response.pk, form.pk)
    return response
