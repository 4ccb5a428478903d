import io
from datetime import timedelta

import pytest
from django.test import RequestFactory
from django.urls import reverse
from django.utils import timezone
from openpyxl import load_workbook

from youthblood import exports, views

from .conftest import make_request


def _form_data(**overrides):
    data = {
        "patient_name": "Rahim Uddin",
        "blood_group": "A+",
        "mobile_number": "01711111111",
        "required_units": "2",
        "hospital_name": "Dhaka Medical College Hospital",
        "location": "Dhaka",
        "sick_details": "Needs surgery",
        "urgency": "urgent",
        "needed_date": (timezone.localdate() + timedelta(days=1)).isoformat(),
        "additional_info": "Call after 5pm",
    }
    data.update(overrides)
    return data


# ---------------- guard ----------------
@pytest.mark.parametrize("name", ["dashboard", "request_list", "my_profile", "admin_dashboard"])
def test_guarded_pages_redirect_to_login(client, name):
    url = reverse(name)
    response = client.get(url)
    assert response.status_code == 302
    assert response["Location"] == f"{reverse('login')}?next={url.replace('/', '%2F')}"


def test_unresolved_session_renders_loading_placeholder():
    request = RequestFactory().get(reverse("dashboard"))
    request.session = {}
    response = views.dashboard(request)
    assert response.status_code == 200
    assert b'id="session-loading"' in response.content
    assert b"Welcome to Dashboard" not in response.content
    assert b"Your information" not in response.content


def test_login_redirects_to_next(client, backend, user_viewer):
    backend.add("POST", "/api/auth/login", body={
        "success": True, "user": {"id": "u1", "name": "Owner", "email": "owner@example.com", "role": "user"},
    })
    response = client.post(reverse("login"), {
        "email": "owner@example.com", "password": "pw", "next": reverse("my_profile"),
    })
    assert response.status_code == 302
    assert response["Location"] == reverse("my_profile")


def test_bad_credentials_show_error(client, backend):
    backend.add("POST", "/api/auth/login", status=401, body={"success": False})
    response = client.post(reverse("login"), {"email": "x@example.com", "password": "nope"})
    assert response.status_code == 200
    assert b"Invalid email or password." in response.content
    assert client.get(reverse("dashboard")).status_code == 302


def test_register_signs_in(client, backend):
    backend.add("POST", "/api/auth/register", status=201, body={
        "success": True, "user": {"id": "n1", "name": "Nadia", "email": "n@x.org", "role": "user"},
    })
    response = client.post(reverse("register"), {
        "name": "Nadia", "email": "n@x.org", "blood_group": "O+", "password1": "secret1", "password2": "secret1",
    })
    assert response.status_code == 302
    assert backend.last_call("POST", "/api/auth/register")["json"]["bloodGroup"] == "O+"
    assert client.get(reverse("dashboard")).status_code == 200


def test_logout_ends_session(login_as, user_viewer):
    client = login_as(user_viewer)
    assert client.get(reverse("dashboard")).status_code == 200
    client.post(reverse("logout"))
    assert client.get(reverse("dashboard")).status_code == 302


def test_logout_ignores_get(login_as, user_viewer):
    client = login_as(user_viewer)
    assert client.get(reverse("logout")).status_code == 405
    assert client.get(reverse("dashboard")).status_code == 200


def test_sign_out_is_a_post_form(login_as, user_viewer):
    client = login_as(user_viewer)
    page = client.get(reverse("dashboard")).content.decode()
    assert f'<form method="post" action="{reverse("logout")}"' in page
    assert f'href="{reverse("logout")}"' not in page


# ---------------- submission form ----------------
def test_form_shows_login_prompt_without_session(client):
    response = client.get(reverse("blood_request"))
    assert response.status_code == 200
    assert b'id="login-prompt"' in response.content
    assert b'name="patient_name"' not in response.content
    assert b'name="required_units"' not in response.content
    assert b'name="needed_date"' not in response.content


def test_submit_attaches_identity_and_redirects(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("POST", "/bloods", status=201, body={"success": True, "data": make_request("new")})

    response = client.post(reverse("blood_request"), _form_data())

    assert response.status_code == 302
    assert response["Location"] == reverse("request_list")
    sent = backend.last_call("POST", "/bloods")["json"]
    assert sent["requesterEmail"] == "owner@example.com"
    assert sent["requestedBy"] == "Owner"
    assert sent["requesterBloodGroup"] == "B+"
    assert sent["status"] == "pending"
    assert sent["requiredUnits"] == 2


def test_submit_failure_keeps_entered_data(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("POST", "/bloods", status=500, body={"success": False, "message": "server exploded"})

    response = client.post(reverse("blood_request"), _form_data(patient_name="Karim Mia"))

    assert response.status_code == 200
    assert b'id="form-error"' in response.content
    assert b'value="Karim Mia"' in response.content


def test_submit_rejects_eleven_units_without_calling_backend(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    response = client.post(reverse("blood_request"), _form_data(required_units="11"))
    assert response.status_code == 200
    assert not backend.called("POST", "/bloods")


# ---------------- list ----------------
def test_list_shows_six_then_all(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods", body={"success": True, "data": [make_request(f"r{i}") for i in range(8)]})

    first = client.get(reverse("request_list"))
    assert first.content.count(b'class="card request-card"') == 6
    assert b"Show All" in first.content

    everything = client.get(reverse("request_list") + "?show=all")
    assert everything.content.count(b'class="card request-card"') == 8
    assert b"Show Less" in everything.content


def test_list_hides_other_peoples_requests(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods", body=[
        make_request("mine"), make_request("theirs", email="other@example.com", requestedBy="Other"),
    ])
    response = client.get(reverse("request_list"))
    assert reverse("request_detail", args=["mine"]).encode() in response.content
    assert reverse("request_detail", args=["theirs"]).encode() not in response.content


def test_list_backend_500_shows_banner(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods", status=500, body={"success": False})
    response = client.get(reverse("request_list"))
    assert response.status_code == 200
    assert b'id="list-error"' in response.content
    assert b"Try Again" in response.content
    assert b'class="card request-card"' not in response.content


def test_admin_list_has_delete_on_everything(login_as, backend, admin_viewer):
    client = login_as(admin_viewer)
    backend.add("GET", "/bloods", body=[make_request("a"), make_request("b", email="other@example.com")])
    response = client.get(reverse("request_list"))
    assert response.content.count(b'class="delete-form"') == 2


def test_list_renders_request_with_unlinkable_id(login_as, backend, admin_viewer):
    client = login_as(admin_viewer)
    backend.add("GET", "/bloods", body=[make_request("a/b", patientName="Slashed Id"), make_request("ok")])
    response = client.get(reverse("request_list"))
    assert response.status_code == 200
    assert b"Slashed Id" in response.content
    assert response.content.count(b'class="card request-card"') == 2
    assert response.content.count(b'class="delete-form"') == 1
    assert reverse("request_detail", args=["ok"]).encode() in response.content


# ---------------- detail ----------------
def test_detail_not_found(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods/zzz", body={"success": False})
    response = client.get(reverse("request_detail", args=["zzz"]))
    assert response.status_code == 404
    assert b"Go Back" in response.content


def test_detail_of_own_request(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods/r1", body={"success": True, "data": make_request("r1")})
    response = client.get(reverse("request_detail", args=["r1"]))
    assert response.status_code == 200
    assert b"Rahim Uddin" in response.content
    assert b"Delete request" in response.content


# ---------------- delete ----------------
def test_delete_never_called_for_non_owner(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods", body=[make_request("theirs", email="other@example.com")])
    backend.add("GET", "/bloods/theirs", body={"success": True, "data": make_request("theirs", email="other@example.com")})
    backend.add("DELETE", "/bloods/theirs", body={"success": True})

    listing = client.get(reverse("request_list"))
    assert b'class="delete-form"' not in listing.content

    response = client.post(reverse("request_delete", args=["theirs"]))
    assert response.status_code == 302
    assert not backend.called("DELETE", "/bloods/theirs")


def test_owner_delete_succeeds(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods/r1", body={"success": True, "data": make_request("r1")})
    backend.add("DELETE", "/bloods/r1", body={"success": True})
    response = client.post(reverse("request_delete", args=["r1"]), follow=False)
    assert response.status_code == 302
    assert response["Location"] == reverse("request_list")
    assert backend.called("DELETE", "/bloods/r1")


def test_delete_failure_shows_alert(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods/r1", body={"success": True, "data": make_request("r1")})
    backend.add("DELETE", "/bloods/r1", status=500, body={"success": False})
    backend.add("GET", "/bloods", body=[make_request("r1")])
    response = client.post(reverse("request_delete", args=["r1"]), follow=True)
    assert b"Failed to delete" in response.content
    assert reverse("request_detail", args=["r1"]).encode() in response.content


def test_delete_requires_post(login_as, user_viewer):
    client = login_as(user_viewer)
    assert client.get(reverse("request_delete", args=["r1"])).status_code == 405


# ---------------- export ----------------
def test_export_csv_contains_visible_rows_only(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods", body=[
        make_request("mine", patientName="Mine Patient"),
        make_request("theirs", email="other@example.com", patientName="Their Patient"),
    ])
    response = client.get(reverse("requests_export") + "?format=csv")
    assert response["Content-Type"] == "text/csv"
    body = response.content.decode()
    assert "Mine Patient" in body
    assert "Their Patient" not in body


def test_export_xlsx(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods", body=[make_request("mine")])
    response = client.get(reverse("requests_export") + "?format=xlsx")
    assert response["Content-Disposition"] == 'attachment; filename="blood-requests.xlsx"'
    assert response.content[:2] == b"PK"


def test_export_pdf_contains_visible_rows_only(login_as, backend, user_viewer, monkeypatch):
    exported = []
    original = exports.request_rows

    def recording_rows(items):
        exported.extend(items)
        return original(items)

    monkeypatch.setattr(exports, "request_rows", recording_rows)
    client = login_as(user_viewer)
    backend.add("GET", "/bloods", body=[
        make_request("mine", patientName="Mine Patient", urgency="emergency"),
        make_request("theirs", email="other@example.com", patientName="Their Patient"),
    ])
    response = client.get(reverse("requests_export") + "?format=pdf")
    assert response["Content-Type"] == "application/pdf"
    assert response["Content-Disposition"] == 'attachment; filename="blood-requests.pdf"'
    assert response.content.startswith(b"%PDF")
    assert [r.patient_name for r in exported] == ["Mine Patient"]


def test_export_xlsx_is_titled_by_scope_and_tinted_by_urgency(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    backend.add("GET", "/bloods", body=[
        make_request("a", urgency="emergency"),
        make_request("b", urgency="normal"),
    ])
    response = client.get(reverse("requests_export") + "?format=xlsx")
    ws = load_workbook(io.BytesIO(response.content)).active
    assert ws["A1"].value == "Blood requests of owner@example.com"
    assert ws["A2"].value == "Patient"
    assert ws["A3"].fill.fgColor.rgb.endswith("FEE2E2")
    assert ws["A4"].fill.fgColor.rgb.endswith("FFFFFF")


# ---------------- profile ----------------
def test_profile_update_reissues_identity(login_as, user_viewer):
    client = login_as(user_viewer)
    response = client.post(reverse("my_profile"), {
        "name": "Owner Renamed", "blood_group": "AB-", "phone": "01722222222", "location": "Khulna",
    })
    assert response.status_code == 302
    page = client.get(reverse("dashboard"))
    assert b"Owner Renamed" in page.content
    assert b"AB-" in page.content
    profile = client.get(reverse("my_profile"))
    assert b"Khulna" in profile.content


# ---------------- admin ----------------
def test_admin_dashboard_rejects_regular_users(login_as, backend, user_viewer):
    client = login_as(user_viewer)
    response = client.get(reverse("admin_dashboard"))
    assert response.status_code == 302
    assert response["Location"] == reverse("dashboard")
    assert not backend.called("GET", "/auth/users")


def test_admin_dashboard_degrades_per_panel(login_as, backend, admin_viewer):
    client = login_as(admin_viewer)
    backend.add("GET", "/auth/users", body={"success": True, "data": [{"name": "Nadia", "email": "n@x.org"}]})
    backend.add("GET", "/auth/activities", status=500, body={"success": False})
    backend.add("GET", "/auth/statistics", body={"success": True, "data": {"totalUsers": 42}})

    stats = client.get(reverse("admin_dashboard"))
    assert b'id="statistics"' in stats.content
    assert b"42" in stats.content
    assert b"Users (1)" in stats.content
    assert b"Activities (0)" in stats.content

    activities = client.get(reverse("admin_dashboard") + "?tab=activities")
    assert b"Activities unavailable." in activities.content

    users = client.get(reverse("admin_dashboard") + "?tab=users")
    assert b"Nadia" in users.content
