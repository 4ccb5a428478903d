from urllib.parse import urlsplit

import pytest
import requests
from django.urls import reverse

from youthblood.models import Viewer


class FakeResponse:
    def __init__(self, status_code=200, body=None, raw=None):
        self.status_code = status_code
        self._body = body
        self._raw = raw

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._raw is not None:
            raise ValueError("not json")
        return self._body


class FakeBackend:
    """Route table standing in for the external API."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, status=200, body=None, raw=None, exc=None):
        self.routes[(method, path)] = (status, body, raw, exc)

    def handle(self, method, url, **kwargs):
        path = urlsplit(url).path
        self.calls.append((method, path, kwargs))
        route = self.routes.get((method, path))
        if route is None:
            return FakeResponse(404, {"success": False, "message": "no route"})
        status, body, raw, exc = route
        if exc is not None:
            raise exc
        return FakeResponse(status, body, raw)

    def called(self, method, path):
        return any(m == method and p == path for m, p, _ in self.calls)

    def last_call(self, method, path):
        for m, p, kwargs in reversed(self.calls):
            if m == method and p == path:
                return kwargs
        return None


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(requests.Session, "request",
                        lambda session, method, url, **kw: fake.handle(method, url, **kw))
    return fake


def make_request(request_id="r1", email="owner@example.com", **overrides):
    data = {
        "_id": request_id,
        "patientName": "Rahim Uddin",
        "bloodGroup": "B+",
        "requiredUnits": 2,
        "mobileNumber": "01711111111",
        "hospitalName": "Dhaka Medical College Hospital",
        "location": "Dhaka",
        "sickDetails": "Surgery",
        "urgency": "urgent",
        "neededDate": "2030-01-15",
        "additionalInfo": "",
        "status": "pending",
        "requestedBy": "Owner",
        "requesterEmail": email,
        "createdAt": "2029-12-01T10:00:00Z",
        "updatedAt": "2029-12-01T10:00:00Z",
    }
    data.update(overrides)
    return data


@pytest.fixture
def user_viewer():
    return Viewer(user_id="u1", name="Owner", email="owner@example.com", role="user", blood_group="B+")


@pytest.fixture
def admin_viewer():
    return Viewer(user_id="a1", name="Admin", email="admin@example.com", role="admin", blood_group="O-")


@pytest.fixture
def login_as(client, backend):
    def _login(viewer):
        backend.add("POST", "/api/auth/login", body={
            "success": True,
            "user": {"id": viewer.user_id, "name": viewer.name, "email": viewer.email,
                     "role": viewer.role, "bloodGroup": viewer.blood_group},
        })
        response = client.post(reverse("login"), {"email": viewer.email, "password": "secret"})
        assert response.status_code == 302
        return client
    return _login
