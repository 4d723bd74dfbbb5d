from __future__ import annotations

import logging
from typing import Any, Callable, Union

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db.models import Q
from django.http import (
    Http404,
    HttpRequest,
    HttpResponse,
    StreamingHttpResponse,
)
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_http_methods
from django_ratelimit.decorators import ratelimit

from .exports import NoResponsesToExport, export_filename, iter_csv
from .forms import (
    FormSettingsForm,
    ProjectForm,
    QuestionForm,
    ResponseFilterForm,
    answer_field_name,
    raw_answers_from_post,
)
from .models import ResearchForm
from .permissions import (
    get_form_or_404,
    get_project_or_404,
    owned_forms,
    owned_projects,
)
from .schema import (
    QuestionType,
    SurveySchemaError,
    add_option,
    add_question,
    delete_question,
    find_question,
    move_question,
    remove_option,
    update_question,
)
from .services import create_form, save_form, set_questions
from .stats import project_summary, researcher_summary, with_response_counts
from .submissions import UNAVAILABLE_MESSAGE, SubmissionRejected, record_response

logger = logging.getLogger(__name__)

FORM_STATUS_FILTERS = ("all", "active", "inactive")


@login_required
def dashboard(request: HttpRequest) -> HttpResponse:
    summary = researcher_summary(request.user)
    recent_projects = owned_projects(request.user)[:5]
    return render(
        request,
        "research/dashboard.html",
        {"summary": summary, "recent_projects": recent_projects},
    )


# -------------------- Projects --------------------


@login_required
def project_list(request: HttpRequest) -> HttpResponse:
    projects = owned_projects(request.user)
    search = (request.GET.get("search") or "").strip()
    if search:
        projects = projects.filter(
            Q(name__icontains=search) | Q(description__icontains=search)
        )
    return render(
        request,
        "research/project_list.html",
        {"projects": projects, "search": search},
    )


@login_required
@require_http_methods(["GET", "POST"])
def project_create(request: HttpRequest) -> HttpResponse:
    if request.method == "POST":
        form = ProjectForm(request.POST)
        if form.is_valid():
            project = form.save(commit=False)
            project.owner = request.user
            project.save()
            logger.info("User %s created project %s", request.user.pk, project.pk)
            messages.success(request, "Project created successfully!")
            return redirect("research:project_detail", pk=project.pk)
    else:
        form = ProjectForm()
    return render(request, "research/project_form.html", {"form": form})


@login_required
def project_detail(request: HttpRequest, pk: int) -> HttpResponse:
    project = get_project_or_404(request.user, pk)
    forms = with_response_counts(project.forms.all())
    return render(
        request,
        "research/project_detail.html",
        {"project": project, "forms": forms, "stats": project_summary(project)},
    )


@login_required
@require_http_methods(["GET", "POST"])
def project_edit(request: HttpRequest, pk: int) -> HttpResponse:
    project = get_project_or_404(request.user, pk)
    if request.method == "POST":
        form = ProjectForm(request.POST, instance=project)
        if form.is_valid():
            form.save()
            messages.success(request, "Project updated successfully!")
            return redirect("research:project_detail", pk=project.pk)
    else:
        form = ProjectForm(instance=project)
    return render(
        request, "research/project_form.html", {"form": form, "project": project}
    )


@login_required
@require_http_methods(["POST"])
def project_visibility(request: HttpRequest, pk: int) -> HttpResponse:
    project = get_project_or_404(request.user, pk)
    project.is_public = not project.is_public
    project.save(update_fields=["is_public", "updated_at"])
    messages.success(
        request, "Project is now public." if project.is_public else "Project is now private."
    )
    return redirect("research:project_detail", pk=project.pk)


@login_required
@require_http_methods(["GET", "POST"])
def project_delete(request: HttpRequest, pk: int) -> HttpResponse:
    """Deleting a project removes its forms and every response to them."""
    project = get_project_or_404(request.user, pk)
    if request.method == "GET":
        return render(
            request,
            "research/confirm_delete.html",
            {"object": project, "kind": "project"},
        )
    name = project.name
    project.delete()
    logger.info("User %s deleted project %s", request.user.pk, pk)
    messages.success(request, f"Project '{name}' has been deleted.")
    return redirect("research:project_list")


# -------------------- Forms --------------------


@login_required
def form_list(request: HttpRequest) -> HttpResponse:
    forms = owned_forms(request.user)
    project_id = request.GET.get("project") or ""
    if project_id.isdigit():
        forms = forms.filter(project_id=project_id)
    status = request.GET.get("status") or "all"
    if status not in FORM_STATUS_FILTERS:
        status = "all"
    if status == "active":
        forms = forms.filter(is_accepting_responses=True)
    elif status == "inactive":
        forms = forms.filter(is_accepting_responses=False)
    search = (request.GET.get("search") or "").strip()
    if search:
        forms = forms.filter(Q(name__icontains=search) | Q(description__icontains=search))
    return render(
        request,
        "research/form_list.html",
        {
            "forms": with_response_counts(forms),
            "projects": owned_projects(request.user),
            "search": search,
            "status": status,
            "status_filters": FORM_STATUS_FILTERS,
            "project_id": project_id,
        },
    )


@login_required
@require_http_methods(["GET", "POST"])
def form_create(request: HttpRequest, project_pk: int) -> HttpResponse:
    project = get_project_or_404(request.user, project_pk)
    if request.method == "POST":
        settings_form = FormSettingsForm(request.POST)
        if settings_form.is_valid():
            data = settings_form.cleaned_data
            form = create_form(
                project,
                name=data["name"],
                description=data.get("description") or "",
                consent_required=data.get("consent_required", True),
            )
            messages.success(request, "Form created. Add your questions below.")
            return redirect("research:form_builder", pk=form.pk)
    else:
        settings_form = FormSettingsForm()
    return render(
        request,
        "research/form_create.html",
        {"project": project, "settings_form": settings_form},
    )


def _builder_context(form: ResearchForm, **extra: Any) -> dict[str, Any]:
    questions = form.questions
    context = {
        "form_obj": form,
        "project": form.project,
        "settings_form": FormSettingsForm(instance=form),
        "question_rows": [
            {"question": q, "form": QuestionForm.initial_for(q)} for q in questions
        ],
        "question_types": QuestionType.choices,
        "public_url": None,
    }
    if form.public_link:
        context["public_url"] = reverse(
            "research:public_form", kwargs={"form_id": form.public_link}
        )
    context.update(extra)
    return context


@login_required
def form_builder(request: HttpRequest, pk) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    return render(request, "research/builder.html", _builder_context(form))


@login_required
@require_http_methods(["POST"])
def builder_settings_update(request: HttpRequest, pk) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    settings_form = FormSettingsForm(request.POST, instance=form)
    if not settings_form.is_valid():
        return render(
            request,
            "research/builder.html",
            _builder_context(form, settings_form=settings_form),
            status=400,
        )
    form = settings_form.save()
    # Keep the survey blob's title in step with the form name
    set_questions(form, form.questions)
    messages.success(request, "Form settings saved.")
    return redirect("research:form_builder", pk=form.pk)


def _apply_question_change(
    request: HttpRequest, form: ResearchForm, change: Callable[[list[dict]], list[dict]]
) -> HttpResponse:
    try:
        questions = change(form.questions)
    except SurveySchemaError as exc:
        messages.error(request, exc.message)
        return redirect("research:form_builder", pk=form.pk)
    set_questions(form, questions)
    return redirect("research:form_builder", pk=form.pk)


@login_required
@require_http_methods(["POST"])
def builder_question_create(request: HttpRequest, pk) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    qtype = request.POST.get("type") or QuestionType.TEXT.value
    return _apply_question_change(
        request, form, lambda questions: add_question(questions, qtype)[0]
    )


@login_required
@require_http_methods(["POST"])
def builder_question_update(request: HttpRequest, pk, qid: str) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    try:
        find_question(form.questions, qid)
    except SurveySchemaError:
        raise Http404("Question not found") from None
    question_form = QuestionForm(request.POST, prefix=f"q{qid}")
    if not question_form.is_valid():
        for field, errors in question_form.errors.items():
            for error in errors:
                messages.error(request, f"{field}: {error}" if field != "__all__" else error)
        return redirect("research:form_builder", pk=form.pk)
    changes = question_form.changes()
    return _apply_question_change(
        request, form, lambda questions: update_question(questions, qid, **changes)
    )


@login_required
@require_http_methods(["POST"])
def builder_question_delete(request: HttpRequest, pk, qid: str) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    return _apply_question_change(
        request, form, lambda questions: delete_question(questions, qid)
    )


@login_required
@require_http_methods(["POST"])
def builder_question_move(request: HttpRequest, pk, qid: str) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    direction = request.POST.get("direction")

    def move(questions: list[dict]) -> list[dict]:
        index, _ = find_question(questions, qid)
        if direction == "up":
            return move_question(questions, qid, index - 1)
        if direction == "down":
            return move_question(questions, qid, index + 1)
        try:
            target = int(request.POST.get("index", index))
        except (TypeError, ValueError):
            raise SurveySchemaError("Invalid position", question_id=qid)
        return move_question(questions, qid, target)

    return _apply_question_change(request, form, move)


@login_required
@require_http_methods(["POST"])
def builder_option_add(request: HttpRequest, pk, qid: str) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    return _apply_question_change(
        request, form, lambda questions: add_option(questions, qid)
    )


@login_required
@require_http_methods(["POST"])
def builder_option_delete(
    request: HttpRequest, pk, qid: str, index: int
) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    return _apply_question_change(
        request, form, lambda questions: remove_option(questions, qid, index)
    )


@login_required
@require_http_methods(["POST"])
def form_save(request: HttpRequest, pk) -> HttpResponse:
    """Builder's "Publish" and "Save draft" buttons."""
    form = get_form_or_404(request.user, pk)
    publish = request.POST.get("action") == "publish"
    try:
        form = save_form(
            form.project,
            form=form,
            name=request.POST.get("name", form.name),
            description=request.POST.get("description", form.description),
            questions=form.questions,
            publish=publish,
        )
    except SurveySchemaError as exc:
        messages.error(request, exc.message)
        return redirect("research:form_builder", pk=form.pk)
    if publish:
        messages.success(request, "Form published! Share the public link to collect responses.")
    else:
        messages.success(request, "Form saved as draft.")
    return redirect("research:form_builder", pk=form.pk)


@login_required
@require_http_methods(["POST"])
def form_close(request: HttpRequest, pk) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    form.close()
    logger.info("Closed form %s", form.pk)
    messages.success(request, "Form closed. It no longer accepts responses.")
    return redirect("research:form_builder", pk=form.pk)


@login_required
@require_http_methods(["GET", "POST"])
def form_delete(request: HttpRequest, pk) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    if request.method == "GET":
        return render(
            request, "research/confirm_delete.html", {"object": form, "kind": "form"}
        )
    project_pk = form.project_id
    name = form.name
    form.delete()
    logger.info("User %s deleted form %s", request.user.pk, pk)
    messages.success(request, f"Form '{name}' has been deleted.")
    return redirect("research:project_detail", pk=project_pk)


def _question_rows(
    questions: list[dict], values: dict[str, Any] | None = None, errors: dict[str, str] | None = None
) -> list[dict[str, Any]]:
    values = values or {}
    errors = errors or {}
    rows = []
    for question in questions:
        qid = str(question.get("id"))
        value = values.get(qid)
        if question.get("type") == QuestionType.CHECKBOX:
            value = value or []
        rows.append(
            {
                "question": question,
                "name": answer_field_name(question),
                "value": "" if value is None else value,
                "error": errors.get(qid),
            }
        )
    return rows


@login_required
@require_http_methods(["GET"])
def form_preview(request: HttpRequest, pk) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    return render(
        request,
        "research/public_form.html",
        {
            "form_obj": form,
            "question_rows": _question_rows(form.questions),
            "preview": True,
        },
    )


@login_required
def form_responses(request: HttpRequest, pk) -> HttpResponse:
    form = get_form_or_404(request.user, pk)
    responses = form.responses.all()
    filter_form = ResponseFilterForm(request.GET or None)
    if filter_form.is_bound and filter_form.is_valid():
        day = filter_form.cleaned_data.get("date")
        if day:
            responses = responses.filter(submitted_at__date=day)
    return render(
        request,
        "research/responses.html",
        {
            "form_obj": form,
            "responses": responses,
            "filter_form": filter_form,
        },
    )


@login_required
def form_export_csv(
    request: HttpRequest, pk
) -> Union[HttpResponse, StreamingHttpResponse]:
    form = get_form_or_404(request.user, pk)
    try:
        rows = iter_csv(form.responses.order_by("submitted_at", "id"))
    except NoResponsesToExport as exc:
        messages.error(request, str(exc))
        return redirect("research:form_responses", pk=form.pk)
    logger.info("User %s exported responses for form %s", request.user.pk, form.pk)
    resp = StreamingHttpResponse(rows, content_type="text/csv")
    resp["Content-Disposition"] = f'attachment; filename="{export_filename(form)}"'
    return resp


# -------------------- Respondents --------------------


def _live_form_or_404(form_id) -> ResearchForm:
    form = ResearchForm.objects.select_related("project").filter(pk=form_id).first()
    if form is None or not form.is_live():
        raise Http404(UNAVAILABLE_MESSAGE)
    return form


@require_http_methods(["GET", "POST"])
@ratelimit(key="ip", rate=settings.PUBLIC_FORM_RATE, method="POST", block=True)
def public_form(request: HttpRequest, form_id) -> HttpResponse:
    """Respondent-facing page for a published form. No sign-in needed."""
    form = _live_form_or_404(form_id)
    consent_given = False
    errors: dict[str, str] = {}
    answers: dict[str, Any] = {}
    if request.method == "POST":
        answers = raw_answers_from_post(form.questions, request.POST)
        consent_given = bool(request.POST.get("consent"))
        try:
            record_response(form, answers, consent_given=consent_given)
        except SubmissionRejected as exc:
            errors = exc.errors
        else:
            return redirect("research:thank_you", form_id=form.pk)
    return render(
        request,
        "research/public_form.html",
        {
            "form_obj": form,
            "question_rows": _question_rows(form.questions, answers, errors),
            "consent_error": errors.get("consent"),
            "consent_given": consent_given,
            "preview": False,
        },
        status=400 if errors else 200,
    )


@require_http_methods(["GET"])
def thank_you(request: HttpRequest, form_id) -> HttpResponse:
    # Rendered even for unknown ids so the page reveals nothing about forms
    form = ResearchForm.objects.filter(pk=form_id).first()
    completed_html = None
    if form is not None and isinstance(form.survey_json, dict):
        completed_html = form.survey_json.get("completedHtml")
    return render(
        request,
        "research/thank_you.html",
        {"form_obj": form, "completed_html": completed_html},
    )
