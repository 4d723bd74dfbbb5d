import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from django.http import StreamingHttpResponse
from django.utils.dateparse import parse_date
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import permissions, serializers, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from durkheim_app.core.accounts import create_account, update_profile
from durkheim_app.core.models import UserProfile
from durkheim_app.research.exports import NoResponsesToExport, export_filename, iter_csv
from durkheim_app.research.models import ResearchForm
from durkheim_app.research.permissions import owned_forms, owned_projects
from durkheim_app.research.schema import (
    QuestionNotFound,
    SurveySchemaError,
    add_option,
    add_question,
    delete_question,
    move_question,
    remove_option,
    update_option,
    update_question,
)
from durkheim_app.research.services import create_form, save_form, set_questions
from durkheim_app.research.stats import researcher_summary, with_response_counts
from durkheim_app.research.submissions import (
    UNAVAILABLE_MESSAGE,
    FormUnavailable,
    SubmissionRejected,
    record_response,
)

from .serializers import (
    FormSaveSerializer,
    FormSerializer,
    OptionUpdateSerializer,
    ProfileSerializer,
    ProjectDetailSerializer,
    ProjectSerializer,
    PublicFormSerializer,
    PublicSubmissionSerializer,
    QuestionCreateSerializer,
    QuestionMoveSerializer,
    QuestionUpdateSerializer,
    ResponseSerializer,
    SigninSerializer,
    SignoutSerializer,
    SignupSerializer,
    UserSerializer,
    schema_error,
)

logger = logging.getLogger(__name__)


def _token_pair(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {"refresh": str(refresh), "access": str(refresh.access_token)}


# -------------------- Authentication --------------------


class SignupView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            user = create_account(**serializer.validated_data)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.message_dict)
        return Response(
            {"user": UserSerializer(user).data, **_token_pair(user)},
            status=status.HTTP_201_CREATED,
        )


class SigninView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = SigninSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        # Axes needs the request to track failed attempts
        user = authenticate(
            request,
            username=serializer.validated_data["email"],
            password=serializer.validated_data["password"],
        )
        if user is None:
            return Response(
                {"detail": "Invalid email or password."},
                status=status.HTTP_401_UNAUTHORIZED,
            )
        return Response({"user": UserSerializer(user).data, **_token_pair(user)})


class SignoutView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = SignoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            RefreshToken(serializer.validated_data["refresh"]).blacklist()
        except TokenError as exc:
            raise serializers.ValidationError({"refresh": str(exc)})
        return Response(status=status.HTTP_205_RESET_CONTENT)


class SessionView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        if not request.user.is_authenticated:
            return Response({"user": None})
        return Response({"user": UserSerializer(request.user).data})


class ProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        profile = UserProfile.get_or_create_for_user(request.user)
        return Response(ProfileSerializer(profile).data)

    def patch(self, request):
        changes = {
            key: request.data[key]
            for key in ("name", "department", "university")
            if key in request.data
        }
        try:
            profile = update_profile(request.user, **changes)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.message_dict)
        return Response(ProfileSerializer(profile).data)


# -------------------- Projects --------------------


class ProjectViewSet(viewsets.ModelViewSet):
    serializer_class = ProjectSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        # Foreign projects are filtered out, so they answer 404
        qs = owned_projects(self.request.user)
        search = (self.request.query_params.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))
        return qs

    def get_serializer_class(self):
        if self.action == "retrieve":
            return ProjectDetailSerializer
        return ProjectSerializer

    def perform_create(self, serializer):
        project = serializer.save(owner=self.request.user)
        logger.info("User %s created project %s", self.request.user.pk, project.pk)


# -------------------- Forms --------------------


class FormViewSet(viewsets.ModelViewSet):
    serializer_class = FormSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        qs = owned_forms(self.request.user)
        params = self.request.query_params
        project = params.get("project")
        if project:
            if not project.isdigit():
                raise serializers.ValidationError({"project": "Must be a project id"})
            qs = qs.filter(project_id=project)
        status_filter = params.get("status") or "all"
        if status_filter == "active":
            qs = qs.filter(is_accepting_responses=True)
        elif status_filter == "inactive":
            qs = qs.filter(is_accepting_responses=False)
        elif status_filter != "all":
            raise serializers.ValidationError(
                {"status": "Must be one of: all, active, inactive"}
            )
        search = (params.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))
        return with_response_counts(qs)

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = create_form(
            data["project"],
            name=data["name"],
            description=data.get("description", ""),
            survey_json=data.get("survey_json"),
            consent_required=data.get("consent_required", True),
            is_public=data.get("is_public", False),
            is_accepting_responses=data.get("is_accepting_responses", False),
        )

    def perform_update(self, serializer):
        form = serializer.save()
        if form.is_public:
            form.ensure_public_link()

    def _form_response(self, form, status_code=status.HTTP_200_OK):
        return Response(self.get_serializer(form).data, status=status_code)

    @action(detail=True, methods=["post"])
    def save(self, request, pk=None):
        """Builder save: ``publish=true`` publishes, otherwise saves a draft."""
        form = self.get_object()
        serializer = FormSaveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            form = save_form(
                form.project,
                form=form,
                name=data["name"],
                description=data.get("description", ""),
                questions=data["questions"],
                publish=data["publish"],
                consent_required=data.get("consent_required"),
            )
        except SurveySchemaError as exc:
            raise schema_error(exc)
        return self._form_response(form)

    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):
        form = self.get_object()
        if not form.questions:
            raise serializers.ValidationError({"detail": "Please add at least one question"})
        form.publish()
        logger.info("Published form %s", form.pk)
        return self._form_response(form)

    @action(detail=True, methods=["post"])
    def close(self, request, pk=None):
        form = self.get_object()
        form.close()
        logger.info("Closed form %s", form.pk)
        return self._form_response(form)

    @action(detail=True, methods=["post"], url_path="public-link")
    def public_link(self, request, pk=None):
        form = self.get_object()
        link = form.ensure_public_link()
        return Response({"public_link": link})

    @action(detail=True, methods=["get"])
    def preview(self, request, pk=None):
        form = self.get_object()
        return Response(PublicFormSerializer(form).data)

    # Builder operations on the embedded question list

    def _apply(self, form, change, status_code=status.HTTP_200_OK):
        try:
            questions = change(form.questions)
        except QuestionNotFound as exc:
            raise NotFound(exc.message)
        except SurveySchemaError as exc:
            raise schema_error(exc)
        set_questions(form, questions)
        return Response({"questions": form.questions}, status=status_code)

    @action(detail=True, methods=["post"])
    def questions(self, request, pk=None):
        form = self.get_object()
        serializer = QuestionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        qtype = serializer.validated_data["type"]
        return self._apply(
            form,
            lambda questions: add_question(questions, qtype)[0],
            status_code=status.HTTP_201_CREATED,
        )

    @action(
        detail=True,
        methods=["patch", "delete"],
        url_path=r"questions/(?P<qid>[^/.]+)",
    )
    def question(self, request, pk=None, qid=None):
        form = self.get_object()
        if request.method == "DELETE":
            return self._apply(form, lambda questions: delete_question(questions, qid))
        serializer = QuestionUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        changes = serializer.validated_data
        return self._apply(
            form, lambda questions: update_question(questions, qid, **changes)
        )

    @action(detail=True, methods=["post"], url_path=r"questions/(?P<qid>[^/.]+)/move")
    def question_move(self, request, pk=None, qid=None):
        form = self.get_object()
        serializer = QuestionMoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        index = serializer.validated_data["index"]
        return self._apply(form, lambda questions: move_question(questions, qid, index))

    @action(detail=True, methods=["post"], url_path=r"questions/(?P<qid>[^/.]+)/options")
    def question_option_add(self, request, pk=None, qid=None):
        form = self.get_object()
        return self._apply(
            form,
            lambda questions: add_option(questions, qid),
            status_code=status.HTTP_201_CREATED,
        )

    @action(
        detail=True,
        methods=["patch", "delete"],
        url_path=r"questions/(?P<qid>[^/.]+)/options/(?P<index>\d+)",
    )
    def question_option(self, request, pk=None, qid=None, index=None):
        form = self.get_object()
        index = int(index)
        if request.method == "DELETE":
            return self._apply(form, lambda questions: remove_option(questions, qid, index))
        serializer = OptionUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        value = serializer.validated_data["value"]
        return self._apply(
            form, lambda questions: update_option(questions, qid, index, value)
        )

    # Responses

    @action(detail=True, methods=["get"])
    def responses(self, request, pk=None):
        form = self.get_object()
        qs = form.responses.all()
        day = request.query_params.get("date")
        if day:
            parsed = parse_date(day)
            if parsed is None:
                raise serializers.ValidationError({"date": "Use YYYY-MM-DD"})
            qs = qs.filter(submitted_at__date=parsed)
        return Response(ResponseSerializer(qs, many=True).data)

    @action(detail=True, methods=["get"])
    def export(self, request, pk=None):
        form = self.get_object()
        try:
            rows = iter_csv(form.responses.order_by("submitted_at", "id"))
        except NoResponsesToExport as exc:
            raise serializers.ValidationError({"detail": str(exc)})
        logger.info("User %s exported responses for form %s", request.user.pk, form.pk)
        resp = StreamingHttpResponse(rows, content_type="text/csv")
        resp["Content-Disposition"] = f'attachment; filename="{export_filename(form)}"'
        return resp


class DashboardView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(researcher_summary(request.user))


# -------------------- Respondents --------------------


@method_decorator(
    ratelimit(key="ip", rate=settings.PUBLIC_FORM_RATE, method="POST", block=True),
    name="post",
)
class PublicFormView(APIView):
    """Anonymous JSON access to a live form; answers are keyed by question id."""

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def _live_form(self, form_id):
        form = ResearchForm.objects.filter(pk=form_id).first()
        if form is None or not form.is_live():
            raise NotFound(UNAVAILABLE_MESSAGE)
        return form

    def get(self, request, form_id):
        return Response(PublicFormSerializer(self._live_form(form_id)).data)

    def post(self, request, form_id):
        form = self._live_form(form_id)
        serializer = PublicSubmissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            response = record_response(
                form,
                serializer.validated_data["answers"],
                consent_given=serializer.validated_data["consent"],
            )
        except FormUnavailable:
            raise NotFound(UNAVAILABLE_MESSAGE)
        except SubmissionRejected as exc:
            raise serializers.ValidationError(
                {key: [message] for key, message in exc.errors.items()}
            )
        return Response(
            {"id": response.pk, "submitted_at": response.submitted_at},
            status=status.HTTP_201_CREATED,
        )


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def healthcheck(request):
    return Response({"status": "ok"})
