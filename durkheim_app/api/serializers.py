from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from durkheim_app.core.accounts import email_in_use, email_validator, normalize_email
from durkheim_app.core.models import UserProfile
from durkheim_app.research.models import FormResponse, ResearchForm, ResearchProject
from durkheim_app.research.permissions import owned_projects
from durkheim_app.research.schema import (
    EDITABLE_FIELDS,
    QuestionType,
    SurveySchemaError,
    normalize_questions,
    normalize_survey,
)
from durkheim_app.research.stats import project_summary

User = get_user_model()

MIN_PASSWORD_LENGTH = 6


class ProfileSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(read_only=True)

    class Meta:
        model = UserProfile
        fields = ["email", "name", "department", "university", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]


class UserSerializer(serializers.ModelSerializer):
    profile = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "profile"]

    def get_profile(self, user):
        return ProfileSerializer(UserProfile.get_or_create_for_user(user)).data


class SignupSerializer(serializers.Serializer):
    email = serializers.CharField(max_length=254, validators=[email_validator])
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    name = serializers.CharField(max_length=255)
    department = serializers.CharField(max_length=255)
    university = serializers.CharField(max_length=255)

    def validate_email(self, value):
        email = normalize_email(value)
        if email_in_use(email):
            raise serializers.ValidationError("An account with this email already exists")
        return email

    def validate(self, attrs):
        password = attrs["password"]
        if len(password) < MIN_PASSWORD_LENGTH:
            raise serializers.ValidationError(
                {"password": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}
            )
        try:
            validate_password(password, user=User(username=attrs["email"], email=attrs["email"]))
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"password": exc.messages})
        return attrs


class SigninSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_email(self, value):
        return normalize_email(value)


class SignoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class ProjectSerializer(serializers.ModelSerializer):
    class Meta:
        model = ResearchProject
        fields = ["id", "name", "description", "is_public", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Project name is required")
        return value


class ProjectDetailSerializer(ProjectSerializer):
    stats = serializers.SerializerMethodField()

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ["stats"]

    def get_stats(self, project):
        return project_summary(project)


def schema_error(exc: SurveySchemaError) -> serializers.ValidationError:
    detail = {"detail": exc.message}
    if exc.question_id:
        detail["question_id"] = exc.question_id
    return serializers.ValidationError(detail)


class FormSerializer(serializers.ModelSerializer):
    project = serializers.PrimaryKeyRelatedField(queryset=ResearchProject.objects.none())
    status = serializers.CharField(read_only=True)
    response_count = serializers.SerializerMethodField()

    class Meta:
        model = ResearchForm
        fields = [
            "id",
            "project",
            "name",
            "description",
            "survey_json",
            "consent_required",
            "is_public",
            "is_accepting_responses",
            "public_link",
            "status",
            "response_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["public_link", "created_at", "updated_at"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        request = self.context.get("request")
        if request is not None:
            # Forms may only live in the acting researcher's projects
            self.fields["project"].queryset = owned_projects(request.user)

    def get_response_count(self, form):
        count = getattr(form, "response_count", None)
        if count is None:
            count = form.responses.count()
        return count

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Please enter a form name")
        return value

    def validate_survey_json(self, value):
        try:
            return normalize_survey(value)
        except SurveySchemaError as exc:
            raise serializers.ValidationError(exc.message)


class FormSaveSerializer(serializers.Serializer):
    name = serializers.CharField(allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    questions = serializers.ListField(child=serializers.DictField(), allow_empty=True)
    publish = serializers.BooleanField(default=False)
    consent_required = serializers.BooleanField(required=False)

    def validate_questions(self, value):
        try:
            return normalize_questions(value)
        except SurveySchemaError as exc:
            raise schema_error(exc)


class QuestionCreateSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=QuestionType.choices, default=QuestionType.TEXT.value)


class QuestionUpdateSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=QuestionType.choices, required=False)
    title = serializers.CharField(required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    required = serializers.BooleanField(required=False)
    options = serializers.ListField(
        child=serializers.CharField(), required=False, allow_empty=False
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError(
                f"Provide at least one of: {', '.join(sorted(EDITABLE_FIELDS))}"
            )
        return attrs


class QuestionMoveSerializer(serializers.Serializer):
    index = serializers.IntegerField(min_value=0)


class OptionUpdateSerializer(serializers.Serializer):
    value = serializers.CharField()


class ResponseSerializer(serializers.ModelSerializer):
    class Meta:
        model = FormResponse
        fields = ["id", "form", "response_data", "submitted_at"]
        read_only_fields = fields


class PublicFormSerializer(serializers.ModelSerializer):
    """What respondents see: the questions, never the owner or flags."""

    questions = serializers.ListField(read_only=True)

    class Meta:
        model = ResearchForm
        fields = ["id", "name", "description", "consent_required", "questions"]


class PublicSubmissionSerializer(serializers.Serializer):
    answers = serializers.DictField(default=dict)
    consent = serializers.BooleanField(default=False)
