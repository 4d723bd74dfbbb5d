from django.conf import settings


def branding(request):
    """Inject platform branding into all templates."""
    return {
        "brand": {
            "title": getattr(settings, "BRAND_TITLE", "Durkheim Intelligence"),
        }
    }
