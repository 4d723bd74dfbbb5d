from django.urls import path

from . import views

app_name = "research"

urlpatterns = [
    path("dashboard/", views.dashboard, name="dashboard"),
    # Projects
    path("research/projects/", views.project_list, name="project_list"),
    path("research/projects/create/", views.project_create, name="project_create"),
    path("research/projects/<int:pk>/", views.project_detail, name="project_detail"),
    path("research/projects/<int:pk>/edit/", views.project_edit, name="project_edit"),
    path("research/projects/<int:pk>/visibility", views.project_visibility, name="project_visibility"),
    path("research/projects/<int:pk>/delete/", views.project_delete, name="project_delete"),
    path("research/projects/<int:project_pk>/forms/create/", views.form_create, name="form_create"),
    # Forms and the builder
    path("research/forms/", views.form_list, name="form_list"),
    path("research/forms/<uuid:pk>/builder/", views.form_builder, name="form_builder"),
    path("research/forms/<uuid:pk>/builder/settings", views.builder_settings_update, name="builder_settings_update"),
    path("research/forms/<uuid:pk>/builder/questions/create", views.builder_question_create, name="builder_question_create"),
    path("research/forms/<uuid:pk>/builder/questions/<str:qid>/update", views.builder_question_update, name="builder_question_update"),
    path("research/forms/<uuid:pk>/builder/questions/<str:qid>/delete", views.builder_question_delete, name="builder_question_delete"),
    path("research/forms/<uuid:pk>/builder/questions/<str:qid>/move", views.builder_question_move, name="builder_question_move"),
    path("research/forms/<uuid:pk>/builder/questions/<str:qid>/options/add", views.builder_option_add, name="builder_option_add"),
    path("research/forms/<uuid:pk>/builder/questions/<str:qid>/options/<int:index>/delete", views.builder_option_delete, name="builder_option_delete"),
    path("research/forms/<uuid:pk>/save", views.form_save, name="form_save"),
    path("research/forms/<uuid:pk>/close", views.form_close, name="form_close"),
    path("research/forms/<uuid:pk>/delete/", views.form_delete, name="form_delete"),
    path("research/forms/<uuid:pk>/preview/", views.form_preview, name="form_preview"),
    path("research/forms/<uuid:pk>/responses/", views.form_responses, name="form_responses"),
    path("research/forms/<uuid:pk>/responses/export.csv", views.form_export_csv, name="form_export_csv"),
    # Respondents
    path("research/<uuid:form_id>/", views.public_form, name="public_form"),
    path("research/<uuid:form_id>/thank-you/", views.thank_you, name="thank_you"),
]
