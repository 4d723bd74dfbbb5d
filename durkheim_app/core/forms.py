from django import forms
from django.contrib.auth import get_user_model
from django.contrib.auth.forms import AuthenticationForm, UserCreationForm

from .accounts import (
    create_account,
    email_in_use,
    email_validator,
    normalize_email,
)
from .models import UserProfile

User = get_user_model()


class SignupForm(UserCreationForm):
    email = forms.CharField(
        max_length=254, validators=[email_validator], widget=forms.EmailInput()
    )
    name = forms.CharField(max_length=255, label="Full name")
    department = forms.CharField(max_length=255)
    university = forms.CharField(max_length=255)

    class Meta(UserCreationForm.Meta):
        model = User
        fields = ("email",)

    def clean_email(self):
        email = normalize_email(self.cleaned_data.get("email"))
        if not email:
            raise forms.ValidationError("Email is required")
        if email_in_use(email):
            raise forms.ValidationError("An account with this email already exists")
        return email

    def save(self, commit=True):
        return create_account(
            email=self.cleaned_data["email"],
            password=self.cleaned_data["password1"],
            name=self.cleaned_data["name"],
            department=self.cleaned_data["department"],
            university=self.cleaned_data["university"],
        )


class EmailAuthenticationForm(AuthenticationForm):
    username = forms.CharField(
        label="Email",
        max_length=254,
        validators=[email_validator],
        widget=forms.EmailInput(attrs={"autofocus": True}),
    )

    error_messages = {
        **AuthenticationForm.error_messages,
        "invalid_login": "Invalid email or password.",
    }

    def clean_username(self):
        return normalize_email(self.cleaned_data.get("username"))


class ProfileForm(forms.ModelForm):
    class Meta:
        model = UserProfile
        fields = ["name", "department", "university"]
