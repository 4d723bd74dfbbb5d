"""Survey schema: the question list embedded in a form's ``survey_json``.

Questions are plain dicts so the blob stored on the form is exactly what the
builder edits. Every operation here is pure: it returns a new list and never
mutates the list it was given.
"""

from __future__ import annotations

import copy
import secrets
from typing import Any, Iterable

from django.db import models


class QuestionType(models.TextChoices):
    TEXT = "text", "Short text"
    TEXTAREA = "textarea", "Long text"
    RADIO = "radio", "Single choice"
    CHECKBOX = "checkbox", "Multiple choice"
    SELECT = "select", "Dropdown"
    RATING = "rating", "Rating (1-5)"


CHOICE_TYPES = frozenset(
    {QuestionType.RADIO.value, QuestionType.CHECKBOX.value, QuestionType.SELECT.value}
)
RATING_SCALE = (1, 2, 3, 4, 5)

DEFAULT_OPTIONS = ("Option 1", "Option 2")
DEFAULT_COMPLETED_HTML = (
    "<h3>Thank you for your participation!</h3>"
    "<p>Your response has been recorded.</p>"
)


class SurveySchemaError(ValueError):
    """A question list or survey blob is malformed."""

    def __init__(self, message: str, *, question_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.question_id = question_id


class QuestionNotFound(SurveySchemaError):
    pass


def is_choice_type(qtype: str) -> bool:
    return qtype in CHOICE_TYPES


def _new_id(existing: Iterable[str]) -> str:
    taken = set(existing)
    while True:
        candidate = secrets.token_hex(4)
        if candidate not in taken:
            return candidate


def new_question(qtype: str, existing: Iterable[dict] = ()) -> dict[str, Any]:
    if qtype not in QuestionType.values:
        raise SurveySchemaError(f"Unknown question type: {qtype}")
    question: dict[str, Any] = {
        "id": _new_id(q.get("id") for q in existing),
        "type": qtype,
        "title": f"New {qtype} question",
        "required": False,
    }
    if is_choice_type(qtype):
        question["options"] = list(DEFAULT_OPTIONS)
    return question


def default_questions() -> list[dict[str, Any]]:
    """The sample question a brand-new form starts with."""
    return [
        {
            "id": "1",
            "type": QuestionType.TEXT.value,
            "title": "Sample Question",
            "description": "This is a sample question. You can edit or delete it.",
            "required": False,
        }
    ]


def normalize_question(raw: Any) -> dict[str, Any]:
    """Validate one question dict and return a canonical copy.

    Keys the builder does not know about are carried over untouched.
    """
    if not isinstance(raw, dict):
        raise SurveySchemaError("Each question must be an object")
    qid = raw.get("id")
    qid = "" if qid is None else str(qid).strip()
    if not qid:
        raise SurveySchemaError("Question id is required")

    qtype = raw.get("type")
    if qtype not in QuestionType.values:
        raise SurveySchemaError(f"Unknown question type: {qtype}", question_id=qid)

    title = raw.get("title")
    title = "" if title is None else str(title).strip()
    if not title:
        raise SurveySchemaError("Question title is required", question_id=qid)

    question = copy.deepcopy(raw)
    question.update({"id": qid, "type": qtype, "title": title})
    question["required"] = bool(raw.get("required", False))

    description = raw.get("description")
    if description is None:
        question.pop("description", None)
    else:
        question["description"] = str(description)

    if is_choice_type(qtype):
        options = raw.get("options")
        if not isinstance(options, (list, tuple)) or not options:
            raise SurveySchemaError(
                "Choice questions need at least one option", question_id=qid
            )
        cleaned = [str(opt).strip() for opt in options]
        if any(not opt for opt in cleaned):
            raise SurveySchemaError("Options cannot be blank", question_id=qid)
        question["options"] = cleaned
    else:
        question.pop("options", None)
    return question


def normalize_questions(raw: Any) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise SurveySchemaError("Questions must be a list")
    questions: list[dict[str, Any]] = []
    seen: set[str] = set()
    declared = {
        str(q["id"]) for q in raw if isinstance(q, dict) and q.get("id") not in (None, "")
    }
    for item in raw:
        # Questions posted without an id get a fresh one
        if isinstance(item, dict) and item.get("id") in (None, ""):
            item = {**item, "id": _new_id(declared)}
            declared.add(item["id"])
        question = normalize_question(item)
        if question["id"] in seen:
            raise SurveySchemaError(
                f"Duplicate question id: {question['id']}", question_id=question["id"]
            )
        seen.add(question["id"])
        questions.append(question)
    return questions


def normalize_survey(raw: Any) -> dict[str, Any]:
    """Validate a stored or submitted ``survey_json`` blob."""
    if raw in (None, ""):
        raw = {}
    if not isinstance(raw, dict):
        raise SurveySchemaError("Survey definition must be an object")
    survey = copy.deepcopy(raw)
    survey["questions"] = normalize_questions(raw.get("questions", []))
    return survey


def build_survey_json(
    name: str,
    description: str | None,
    questions: Iterable[dict],
    base: dict | None = None,
) -> dict[str, Any]:
    """Assemble the blob stored on a form when the builder saves."""
    survey = copy.deepcopy(base) if isinstance(base, dict) else {}
    survey["title"] = name
    survey["description"] = description or ""
    survey["questions"] = normalize_questions(list(questions))
    survey.setdefault("showProgressBar", True)
    survey.setdefault("completedHtml", DEFAULT_COMPLETED_HTML)
    return survey


def get_questions(survey_json: Any) -> list[dict[str, Any]]:
    if not isinstance(survey_json, dict):
        return []
    questions = survey_json.get("questions") or []
    return [q for q in questions if isinstance(q, dict)]


def find_question(questions: list[dict], qid: str) -> tuple[int, dict]:
    for index, question in enumerate(questions):
        if str(question.get("id")) == str(qid):
            return index, question
    raise QuestionNotFound(f"Question {qid} not found", question_id=str(qid))


# -------------------- Builder operations --------------------


def add_question(questions: list[dict], qtype: str) -> tuple[list[dict], dict]:
    question = new_question(qtype, questions)
    return [*copy.deepcopy(questions), question], question


EDITABLE_FIELDS = frozenset({"type", "title", "description", "required", "options"})


def update_question(questions: list[dict], qid: str, **changes: Any) -> list[dict]:
    index, current = find_question(questions, qid)
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise SurveySchemaError(
            f"Cannot change {', '.join(sorted(unknown))}", question_id=str(qid)
        )
    merged = {**copy.deepcopy(current), **changes}
    # Switching into a choice type without options seeds the defaults
    if (
        is_choice_type(merged.get("type"))
        and "options" not in changes
        and not merged.get("options")
    ):
        merged["options"] = list(DEFAULT_OPTIONS)
    result = copy.deepcopy(questions)
    result[index] = normalize_question(merged)
    return result


def delete_question(questions: list[dict], qid: str) -> list[dict]:
    index, _ = find_question(questions, qid)
    result = copy.deepcopy(questions)
    del result[index]
    return result


def move_question(questions: list[dict], qid: str, new_index: int) -> list[dict]:
    index, _ = find_question(questions, qid)
    result = copy.deepcopy(questions)
    question = result.pop(index)
    new_index = max(0, min(int(new_index), len(result)))
    result.insert(new_index, question)
    return result


def reorder_questions(questions: list[dict], ids: Iterable[str]) -> list[dict]:
    ids = [str(i) for i in ids]
    by_id = {str(q.get("id")): q for q in questions}
    if len(ids) != len(by_id) or set(ids) != set(by_id):
        raise SurveySchemaError("Reorder must list every question exactly once")
    return [copy.deepcopy(by_id[i]) for i in ids]


def _choice_question(questions: list[dict], qid: str) -> tuple[int, list[dict]]:
    index, question = find_question(questions, qid)
    if not is_choice_type(question.get("type")):
        raise SurveySchemaError(
            "Only choice questions have options", question_id=str(qid)
        )
    return index, copy.deepcopy(questions)


def add_option(questions: list[dict], qid: str) -> list[dict]:
    index, result = _choice_question(questions, qid)
    options = list(result[index].get("options") or [])
    options.append(f"Option {len(options) + 1}")
    result[index]["options"] = options
    return result


def update_option(questions: list[dict], qid: str, option_index: int, value: str) -> list[dict]:
    index, result = _choice_question(questions, qid)
    options = list(result[index].get("options") or [])
    if not 0 <= option_index < len(options):
        raise SurveySchemaError("Option does not exist", question_id=str(qid))
    value = (value or "").strip()
    if not value:
        raise SurveySchemaError("Options cannot be blank", question_id=str(qid))
    options[option_index] = value
    result[index]["options"] = options
    return result


def remove_option(questions: list[dict], qid: str, option_index: int) -> list[dict]:
    index, result = _choice_question(questions, qid)
    options = list(result[index].get("options") or [])
    if not 0 <= option_index < len(options):
        raise SurveySchemaError("Option does not exist", question_id=str(qid))
    if len(options) <= 1:
        raise SurveySchemaError(
            "A choice question needs at least one option", question_id=str(qid)
        )
    del options[option_index]
    result[index]["options"] = options
    return result
