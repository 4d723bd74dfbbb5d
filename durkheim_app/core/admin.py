from django.contrib import admin

from .models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("name", "user", "department", "university", "updated_at")
    search_fields = ("name", "user__email", "department", "university")
