import logging

from django.contrib import messages
from django.contrib.auth import login
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django.shortcuts import redirect, render

from durkheim_app.research.models import FormResponse, ResearchForm, ResearchProject

from .accounts import update_profile
from .forms import ProfileForm, SignupForm
from .models import UserProfile

logger = logging.getLogger(__name__)


def home(request):
    return render(request, "core/home.html")


def healthz(request):
    """Lightweight health endpoint for load balancers and readiness probes.
    Returns 200 OK without auth or redirects.
    """
    return HttpResponse("ok", content_type="text/plain")


@login_required
def profile(request):
    prof = UserProfile.get_or_create_for_user(request.user)
    if request.method == "POST":
        form = ProfileForm(request.POST, instance=prof)
        if form.is_valid():
            try:
                update_profile(request.user, **form.cleaned_data)
            except ValidationError as exc:
                for field, errors in exc.message_dict.items():
                    for error in errors:
                        form.add_error(field if field in form.fields else None, error)
            else:
                messages.success(request, "Profile updated successfully!")
                return redirect("core:profile")
        messages.error(request, "Failed to update profile.")
    else:
        form = ProfileForm(instance=prof)
    user = request.user
    stats = {
        "projects": ResearchProject.objects.filter(owner=user).count(),
        "forms": ResearchForm.objects.filter(project__owner=user).count(),
        "responses": FormResponse.objects.filter(form__project__owner=user).count(),
    }
    return render(
        request,
        "core/profile.html",
        {"form": form, "profile": prof, "stats": stats},
    )


def signup(request):
    if request.user.is_authenticated:
        return redirect("research:dashboard")
    if request.method == "POST":
        form = SignupForm(request.POST)
        if form.is_valid():
            try:
                user = form.save()
            except ValidationError as exc:
                form.add_error("email", exc.message_dict.get("email", exc.messages))
            else:
                # With multiple AUTHENTICATION_BACKENDS configured (ModelBackend + Axes),
                # login() requires an explicit backend unless the user was authenticated via authenticate().
                login(request, user, backend="django.contrib.auth.backends.ModelBackend")
                messages.success(request, "Account created successfully!")
                return redirect("research:dashboard")
    else:
        form = SignupForm()
    return render(request, "registration/signup.html", {"form": form})
