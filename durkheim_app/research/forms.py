from __future__ import annotations

from typing import Any

from django import forms
from django.http import QueryDict

from .models import ResearchForm, ResearchProject
from .schema import QuestionType, is_choice_type


class ProjectForm(forms.ModelForm):
    class Meta:
        model = ResearchProject
        fields = ["name", "description", "is_public"]
        widgets = {"description": forms.Textarea(attrs={"rows": 3})}

    def clean_name(self):
        name = (self.cleaned_data.get("name") or "").strip()
        if not name:
            raise forms.ValidationError("Project name is required")
        return name


class FormSettingsForm(forms.ModelForm):
    class Meta:
        model = ResearchForm
        fields = ["name", "description", "consent_required"]
        widgets = {"description": forms.Textarea(attrs={"rows": 3})}

    def clean_name(self):
        name = (self.cleaned_data.get("name") or "").strip()
        if not name:
            raise forms.ValidationError("Please enter a form name")
        return name


class QuestionForm(forms.Form):
    """One question in the builder; options are entered one per line."""

    title = forms.CharField(max_length=500)
    description = forms.CharField(required=False, widget=forms.TextInput)
    type = forms.ChoiceField(choices=QuestionType.choices)
    required = forms.BooleanField(required=False)
    options = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={"rows": 3}),
        help_text="One option per line",
    )

    def clean_options(self) -> list[str]:
        raw = self.cleaned_data.get("options") or ""
        return [line.strip() for line in raw.splitlines() if line.strip()]

    def clean(self):
        cleaned = super().clean()
        if is_choice_type(cleaned.get("type")) and not cleaned.get("options"):
            self.add_error("options", "Choice questions need at least one option")
        return cleaned

    def changes(self) -> dict[str, Any]:
        data = self.cleaned_data
        changes: dict[str, Any] = {
            "title": data["title"],
            "description": data.get("description") or None,
            "type": data["type"],
            "required": data.get("required", False),
        }
        if is_choice_type(data["type"]):
            changes["options"] = data["options"]
        return changes

    @classmethod
    def initial_for(cls, question: dict) -> "QuestionForm":
        return cls(
            initial={
                "title": question.get("title", ""),
                "description": question.get("description", ""),
                "type": question.get("type"),
                "required": question.get("required", False),
                "options": "\n".join(question.get("options") or []),
            },
            prefix=f"q{question.get('id')}",
        )


class ResponseFilterForm(forms.Form):
    date = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}))


def answer_field_name(question: dict) -> str:
    return f"q_{question.get('id')}"


def raw_answers_from_post(questions: list[dict], data: QueryDict) -> dict[str, Any]:
    """Collect posted answers keyed by question id."""
    answers: dict[str, Any] = {}
    for question in questions:
        key = answer_field_name(question)
        if question.get("type") == QuestionType.CHECKBOX:
            answers[str(question.get("id"))] = data.getlist(key)
        else:
            answers[str(question.get("id"))] = data.get(key)
    return answers
