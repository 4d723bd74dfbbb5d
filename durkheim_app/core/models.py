from django.contrib.auth import get_user_model
from django.db import models

User = get_user_model()

PROFILE_FIELDS = ("name", "department", "university")


class UserProfile(models.Model):
    """Institutional details for a researcher account.

    Each user has exactly one profile, created alongside the account at
    sign-up. The user's email doubles as their username.
    """

    user = models.OneToOneField(
        User, on_delete=models.CASCADE, related_name="profile"
    )
    name = models.CharField(max_length=255)
    department = models.CharField(max_length=255)
    university = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "User Profile"
        verbose_name_plural = "User Profiles"

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.name} ({self.user.email})"

    @property
    def email(self) -> str:
        return self.user.email

    @classmethod
    def get_or_create_for_user(cls, user):
        """Get or create a profile for a user, seeding the name from the account."""
        profile, created = cls.objects.get_or_create(
            user=user,
            defaults={
                "name": user.get_full_name() or user.username,
                "department": "",
                "university": "",
            },
        )
        return profile
