from django.contrib import admin

from .models import FormResponse, ResearchForm, ResearchProject


@admin.register(ResearchProject)
class ResearchProjectAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "is_public", "created_at")
    list_filter = ("is_public",)
    search_fields = ("name", "description", "owner__email")


@admin.register(ResearchForm)
class ResearchFormAdmin(admin.ModelAdmin):
    list_display = ("name", "project", "is_public", "is_accepting_responses", "created_at")
    list_filter = ("is_public", "is_accepting_responses", "consent_required")
    search_fields = ("name", "description", "project__name")
    readonly_fields = ("public_link",)


@admin.register(FormResponse)
class FormResponseAdmin(admin.ModelAdmin):
    list_display = ("id", "form", "submitted_at")
    list_select_related = ("form",)
