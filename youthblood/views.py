# youthblood/views.py
import dataclasses
import logging
from functools import wraps
from urllib.parse import urlencode

from django.conf import settings
from django.contrib import messages
from django.http import HttpResponseNotAllowed
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from . import exceptions
from .audit import log_event
from .exports import EXPORT_FORMATS, export_requests
from .forms import BloodRequestForm, LoginForm, ProfileUpdateForm, RegisterForm
from .models import Role
from .policy import can_delete, can_view, visible_requests
from .services import AdminService, AuthService, BloodsService
from .session import SessionState, session_state, sign_in, sign_out, update_identity

logger = logging.getLogger(__name__)

PROFILE_SESSION_KEY = "profile"
ADMIN_TABS = ("dashboard", "users", "activities")


# ------------------------ helpers ------------------------
def _viewer(request):
    return getattr(request, "viewer", None)


def _login_url(next_path):
    return f"{reverse('login')}?{urlencode({'next': next_path})}"


def _safe_next(request, fallback):
    next_url = request.POST.get("next") or request.GET.get("next")
    if next_url and url_has_allowed_host_and_scheme(
        next_url, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return next_url
    return reverse(fallback)


# ------------------------ route guards ------------------------
def session_required(view_func):
    """
    Loading page while the session is unresolved, login redirect when
    there is no session, the wrapped view otherwise.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        state = session_state(request)
        if state is SessionState.UNRESOLVED:
            return render(request, "youthblood/loading.html")
        if state is SessionState.ABSENT:
            return redirect(_login_url(request.get_full_path()))
        return view_func(request, *args, **kwargs)
    return _wrapped


def role_required(expected_role):
    def decorator(view_func):
        @wraps(view_func)
        @session_required
        def _wrapped(request, *args, **kwargs):
            if request.viewer.role != expected_role:
                messages.error(request, "You do not have access to this page.")
                return redirect("dashboard")
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator


# ------------------------ auth ------------------------
def login(request):
    if _viewer(request) is not None:
        return redirect("dashboard")
    error = None
    if request.method == "POST":
        form = LoginForm(request.POST)
        if form.is_valid():
            try:
                viewer = AuthService().login(form.cleaned_data["email"], form.cleaned_data["password"])
            except exceptions.AuthError as exc:
                logger.info("login failed for %s: %s", form.cleaned_data["email"], exc.message)
                error = "Invalid email or password."
            else:
                sign_in(request, viewer)
                messages.success(request, f"Welcome back, {viewer.name or viewer.email}!")
                return redirect(_safe_next(request, "dashboard"))
    else:
        form = LoginForm()
    return render(request, "youthblood/login.html", {
        "form": form, "error": error, "next": request.GET.get("next") or request.POST.get("next", ""),
    })


def register(request):
    if _viewer(request) is not None:
        return redirect("dashboard")
    error = None
    if request.method == "POST":
        form = RegisterForm(request.POST)
        if form.is_valid():
            data = form.cleaned_data
            try:
                viewer = AuthService().register(data["name"], data["email"], data["password1"],
                                                data.get("blood_group") or "")
            except exceptions.AuthError as exc:
                error = exc.message
            else:
                sign_in(request, viewer)
                log_event(request, "register")
                messages.success(request, "Welcome! Your account was created.")
                return redirect("dashboard")
    else:
        form = RegisterForm()
    return render(request, "youthblood/register.html", {"form": form, "error": error})


@require_POST
def logout(request):
    sign_out(request)
    messages.info(request, "You have been signed out.")
    return redirect("home")


# ------------------------ public ------------------------
def home(request):
    return render(request, "youthblood/home.html")


# ------------------------ signed-in ------------------------
@session_required
def dashboard(request):
    return render(request, "youthblood/dashboard.html")


def blood_request(request):
    """
    Submission form. Without a session a login prompt is shown in place of
    the form.
    """
    viewer = _viewer(request)
    if viewer is None:
        return render(request, "youthblood/login_prompt.html", {"login_url": _login_url(request.get_full_path())})

    if request.method == "POST":
        form = BloodRequestForm(request.POST)
        if form.is_valid():
            try:
                created = BloodsService().create_request(form.to_blood_request(viewer))
            except exceptions.BackendError as exc:
                logger.warning("blood request submission failed: %s", exc.message)
                form.add_error(None, f"Error submitting blood request: {exc.message}. Please try again.")
            else:
                log_event(request, "blood_request_created", request_id=created.id,
                          blood_group=created.blood_group, units=created.required_units)
                messages.success(request, "Blood request submitted successfully!")
                return redirect("request_list")
    else:
        form = BloodRequestForm()

    return render(request, "youthblood/request_form.html", {"form": form})


@session_required
def request_list(request):
    """
    Requests visible to the viewer: everything for admins, own requests
    otherwise. The first REQUESTS_PAGE_SIZE are shown unless ?show=all.
    """
    viewer = request.viewer
    error = None
    items = []
    try:
        items = visible_requests(viewer, BloodsService().list_requests())
    except exceptions.FetchError as exc:
        logger.warning("listing blood requests failed: %s", exc.message)
        error = "Failed to load blood requests"

    page_size = settings.REQUESTS_PAGE_SIZE
    show_all = request.GET.get("show") == "all"
    shown = items if show_all else items[:page_size]
    rows = [{"item": r, "can_delete": can_delete(r, viewer)} for r in shown]
    for r in shown:
        if r.id and not r.has_detail_page:
            logger.warning("blood request id %r cannot be linked; showing it without actions", r.id)

    return render(request, "youthblood/request_list.html", {
        "rows": rows,
        "error": error,
        "total": len(items),
        "show_all": show_all,
        "has_more": len(items) > page_size,
        "export_formats": EXPORT_FORMATS,
    })


@session_required
def request_detail(request, request_id):
    try:
        item = BloodsService().get_request(request_id)
    except exceptions.NotFoundError:
        return render(request, "youthblood/not_found.html", status=404)
    except exceptions.FetchError as exc:
        logger.warning("loading blood request %s failed: %s", request_id, exc.message)
        return render(request, "youthblood/request_detail.html",
                      {"error": "Failed to fetch blood request details"})

    if not can_view(item, request.viewer):
        return render(request, "youthblood/not_found.html", status=404)

    return render(request, "youthblood/request_detail.html", {
        "item": item, "can_delete": can_delete(item, request.viewer),
    })


@session_required
def request_delete(request, request_id):
    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])
    next_url = _safe_next(request, "request_list")
    service = BloodsService()

    try:
        item = service.get_request(request_id)
    except exceptions.NotFoundError:
        messages.error(request, "This request no longer exists.")
        return redirect(next_url)
    except exceptions.FetchError:
        messages.error(request, "Failed to delete")
        return redirect(next_url)

    if not can_delete(item, request.viewer):
        log_event(request, "blood_request_delete_denied", request_id=request_id)
        messages.error(request, "You can only delete your own requests.")
        return redirect(next_url)

    try:
        service.delete_request(request_id)
    except exceptions.DeleteError as exc:
        logger.warning("deleting blood request %s failed: %s", request_id, exc.message)
        messages.error(request, "Failed to delete")
        return redirect(next_url)

    log_event(request, "blood_request_deleted", request_id=request_id, patient=item.patient_name)
    messages.success(request, "Request deleted.")
    # the detail page of a deleted request would 404
    if next_url.rstrip("/").endswith(str(request_id)):
        next_url = reverse("request_list")
    return redirect(next_url)


@session_required
def requests_export(request):
    fmt = request.GET.get("format", "csv")
    if fmt not in EXPORT_FORMATS:
        fmt = "csv"
    try:
        items = visible_requests(request.viewer, BloodsService().list_requests())
    except exceptions.FetchError:
        messages.error(request, "Failed to load blood requests")
        return redirect("request_list")
    log_event(request, "blood_requests_export", format=fmt, rows=len(items))
    scope = "All blood requests" if request.viewer.is_admin else f"Blood requests of {request.viewer.email}"
    return export_requests(items, fmt, scope)


@session_required
def my_profile(request):
    """
    Profile page:
    - shows the session identity
    - name and blood group changes re-issue the session token
    - phone, location and birth date are kept in the session
    """
    viewer = request.viewer
    extras = request.session.get(PROFILE_SESSION_KEY, {})

    if request.method == "POST":
        form = ProfileUpdateForm(request.POST)
        if form.is_valid():
            data = form.cleaned_data
            dob = data.get("date_of_birth")
            request.session[PROFILE_SESSION_KEY] = {
                "phone": data.get("phone") or "",
                "location": data.get("location") or "",
                "date_of_birth": dob.isoformat() if dob else "",
            }
            update_identity(request, dataclasses.replace(
                viewer, name=data["name"], blood_group=data.get("blood_group") or "",
            ))
            messages.success(request, "Profile updated.")
            return redirect("my_profile")
    else:
        initial = {"name": viewer.name, "blood_group": viewer.blood_group}
        initial.update({k: v for k, v in extras.items() if v})
        form = ProfileUpdateForm(initial=initial)

    return render(request, "youthblood/profile.html", {
        "form": form, "extras": extras, "editing": request.method == "POST" or "edit" in request.GET,
    })


# ------------------------ admin ------------------------
@role_required(Role.ADMIN)
def admin_dashboard(request):
    """
    Users, recent activities and statistics, fetched concurrently.
    A failed fetch empties its own panel only.
    """
    tab = request.GET.get("tab", "dashboard")
    if tab not in ADMIN_TABS:
        tab = "dashboard"
    results, errors = AdminService().fetch_dashboard()
    return render(request, "youthblood/admin_dashboard.html", {
        "tab": tab,
        "users": results.get("users") or [],
        "activities": results.get("activities") or [],
        "statistics": results.get("statistics"),
        "errors": errors,
    })
