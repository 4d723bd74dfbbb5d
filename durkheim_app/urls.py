from django.contrib import admin
from django.contrib.auth import views as auth_views
from django.urls import include, path
from django.views.generic import RedirectView

from durkheim_app.core.forms import EmailAuthenticationForm

urlpatterns = [
    path("", RedirectView.as_view(pattern_name="core:home", permanent=False)),
    path("admin/", admin.site.urls),
    path(
        "accounts/login/",
        auth_views.LoginView.as_view(
            template_name="registration/login.html",
            authentication_form=EmailAuthenticationForm,
            redirect_authenticated_user=True,
        ),
        name="login",
    ),
    path("accounts/logout/", auth_views.LogoutView.as_view(), name="logout"),
    path("", include("durkheim_app.core.urls")),
    path("", include("durkheim_app.research.urls")),
    path("api/", include("durkheim_app.api.urls")),
]

handler403 = "durkheim_app.core.error_handlers.custom_permission_denied_view"
handler404 = "durkheim_app.core.error_handlers.custom_page_not_found_view"
handler500 = "durkheim_app.core.error_handlers.custom_server_error_view"
