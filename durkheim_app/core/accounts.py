"""Account creation and profile updates shared by the pages and the API."""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import transaction

from .models import PROFILE_FIELDS, UserProfile

User = get_user_model()
logger = logging.getLogger(__name__)

# Anything@anything; deliverability is not checked
email_validator = RegexValidator(r"^\S+@\S+$", "Please enter a valid email")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def email_in_use(email: str) -> bool:
    email = normalize_email(email)
    return (
        User.objects.filter(email__iexact=email).exists()
        or User.objects.filter(username__iexact=email).exists()
    )


@transaction.atomic
def create_account(
    *, email: str, password: str, name: str, department: str, university: str
) -> User:
    """Create a user and its profile in one transaction.

    The caller is expected to have validated the password already.
    """
    email = normalize_email(email)
    if email_in_use(email):
        raise ValidationError({"email": "An account with this email already exists"})
    user = User(username=email, email=email)
    user.set_password(password)
    user.save()
    UserProfile.objects.create(
        user=user,
        name=name.strip(),
        department=department.strip(),
        university=university.strip(),
    )
    logger.info("Created account for %s", email)
    return user


def update_profile(user, **changes) -> UserProfile:
    """Apply a partial update to the user's profile.

    Only name, department and university may change, and none may be blank.
    """
    profile = UserProfile.get_or_create_for_user(user)
    errors = {}
    updated = []
    for field, value in changes.items():
        if field not in PROFILE_FIELDS:
            continue
        value = (value or "").strip()
        if not value:
            errors[field] = f"{field.capitalize()} is required"
            continue
        setattr(profile, field, value)
        updated.append(field)
    if errors:
        raise ValidationError(errors)
    if updated:
        profile.save(update_fields=[*updated, "updated_at"])
    return profile
