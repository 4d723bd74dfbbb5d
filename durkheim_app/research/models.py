from __future__ import annotations

import uuid

from django.contrib.auth import get_user_model
from django.db import models
from django.utils import timezone

from .schema import get_questions

User = get_user_model()


class ResearchProject(models.Model):
    owner = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="research_projects"
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    is_public = models.BooleanField(
        default=False,
        help_text="Whether project findings may be shared beyond the owner",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class ResearchForm(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"
        DRAFT = "draft", "Draft"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(
        ResearchProject, on_delete=models.CASCADE, related_name="forms"
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    # {title, description, questions: [...], showProgressBar, completedHtml}
    survey_json = models.JSONField(default=dict, blank=True)
    consent_required = models.BooleanField(default=True)
    is_public = models.BooleanField(default=False)
    is_accepting_responses = models.BooleanField(default=False)
    public_link = models.CharField(max_length=64, null=True, blank=True, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return self.name

    @property
    def owner(self):
        return self.project.owner

    @property
    def questions(self) -> list[dict]:
        return get_questions(self.survey_json)

    @property
    def status(self) -> str:
        if self.is_accepting_responses:
            return self.Status.ACTIVE.value
        if self.is_public:
            return self.Status.COMPLETED.value
        return self.Status.DRAFT.value

    def is_live(self) -> bool:
        return self.is_public and self.is_accepting_responses

    def ensure_public_link(self) -> str:
        """Assign the public link (the form's own id) if it has none yet."""
        if not self.public_link:
            self.public_link = str(self.id)
            self.save(update_fields=["public_link", "updated_at"])
        return self.public_link

    def publish(self) -> None:
        self.is_public = True
        self.is_accepting_responses = True
        self.save(update_fields=["is_public", "is_accepting_responses", "updated_at"])
        self.ensure_public_link()

    def save_as_draft(self) -> None:
        self.is_public = False
        self.is_accepting_responses = False
        self.save(update_fields=["is_public", "is_accepting_responses", "updated_at"])

    def close(self) -> None:
        self.is_accepting_responses = False
        self.save(update_fields=["is_accepting_responses", "updated_at"])


class FormResponse(models.Model):
    form = models.ForeignKey(
        ResearchForm, on_delete=models.CASCADE, related_name="responses"
    )
    # question title -> answer (str, int, or list of str for multi-choice)
    response_data = models.JSONField(default=dict)
    submitted_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-submitted_at", "-id"]
        indexes = [
            models.Index(fields=["form", "submitted_at"], name="research_response_form_day_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Response {self.pk} to {self.form_id}"
