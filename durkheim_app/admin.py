"""Admin site for Durkheim Intelligence; superusers only."""

from django.conf import settings
from django.contrib.admin import AdminSite
from django.contrib.admin.apps import AdminConfig

BRAND = getattr(settings, "BRAND_TITLE", "Durkheim Intelligence")


class DurkheimAdminSite(AdminSite):
    site_header = f"{BRAND} Admin"
    site_title = f"{BRAND} Admin"
    index_title = "Researchers, projects and forms"
    site_url = "/dashboard/"
    empty_value_display = "(none)"

    def has_permission(self, request):  # type: ignore[override]
        # Researchers never see the admin, staff flag or not
        user = request.user
        return bool(user and user.is_active and user.is_superuser)


class DurkheimAdminConfig(AdminConfig):
    default_site = "durkheim_app.admin.DurkheimAdminSite"
