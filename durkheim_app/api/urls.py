from django.urls import include, path
from rest_framework.permissions import AllowAny
from rest_framework.routers import DefaultRouter
from rest_framework.schemas import get_schema_view
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views

router = DefaultRouter()
router.register(r"projects", views.ProjectViewSet, basename="project")
router.register(r"forms", views.FormViewSet, basename="form")

urlpatterns = [
    path("health", views.healthcheck, name="healthcheck"),
    path("token", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh", TokenRefreshView.as_view(), name="token_refresh"),
    path("auth/signup", views.SignupView.as_view(), name="auth_signup"),
    path("auth/signin", views.SigninView.as_view(), name="auth_signin"),
    path("auth/signout", views.SignoutView.as_view(), name="auth_signout"),
    path("auth/session", views.SessionView.as_view(), name="auth_session"),
    path("profile", views.ProfileView.as_view(), name="profile"),
    path("dashboard", views.DashboardView.as_view(), name="dashboard"),
    path("public/forms/<uuid:form_id>", views.PublicFormView.as_view(), name="public_form"),
    # OpenAPI schema (JSON)
    path(
        "schema",
        get_schema_view(
            title="Durkheim Intelligence API",
            description="OpenAPI schema for the Durkheim Intelligence API",
            version="1.0.0",
            permission_classes=[AllowAny],
        ),
        name="openapi-schema",
    ),
    path("", include(router.urls)),
]
