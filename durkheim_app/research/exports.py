"""CSV export of a form's responses."""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Iterator

from django.utils.text import slugify

from .models import FormResponse, ResearchForm

BASE_COLUMNS = ["Response ID", "Submitted At"]
LIST_SEPARATOR = "; "


class NoResponsesToExport(Exception):
    def __init__(self):
        super().__init__("No responses to export")


def answer_columns(responses: Iterable[FormResponse]) -> list[str]:
    """Every answer key across the responses, in first-seen order."""
    columns: dict[str, None] = {}
    for response in responses:
        for key in (response.response_data or {}):
            columns.setdefault(key, None)
    return list(columns)


def format_answer(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return LIST_SEPARATOR.join(str(v) for v in value)
    return str(value)


def iter_rows(responses: list[FormResponse]) -> Iterator[list[str]]:
    columns = answer_columns(responses)
    yield BASE_COLUMNS + columns
    for response in responses:
        data = response.response_data or {}
        yield [
            str(response.pk),
            response.submitted_at.isoformat(),
            *(format_answer(data.get(key)) for key in columns),
        ]


def iter_csv(responses: Iterable[FormResponse]) -> Iterator[str]:
    """Return an iterator over CSV lines, for streaming responses.

    Raises NoResponsesToExport up front rather than on first iteration.
    """
    responses = list(responses)
    if not responses:
        raise NoResponsesToExport()
    return _generate_csv(responses)


def _generate_csv(responses: list[FormResponse]) -> Iterator[str]:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    for row in iter_rows(responses):
        writer.writerow(row)
        yield buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)


def responses_to_csv(responses: Iterable[FormResponse]) -> str:
    return "".join(iter_csv(responses))


def export_filename(form: ResearchForm) -> str:
    return f"{slugify(form.name) or 'form'}-responses.csv"
