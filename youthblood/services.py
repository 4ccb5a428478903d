# youthblood/services.py
"""
Clients for the external backend.

Every call is a single attempt with a timeout; failures are raised as the
exceptions in ``youthblood.exceptions`` and handled by the calling view.
"""
import logging
from concurrent.futures import ThreadPoolExecutor

import requests
from django.conf import settings

from .exceptions import (
    AuthError, DeleteError, FetchError, NotFoundError, ValidationError,
)
from .models import BloodRequest, Viewer

logger = logging.getLogger(__name__)


def unwrap_collection(body):
    """Accept a bare list or a ``{success, data: [...]}`` envelope."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        if not body.get("success", False):
            raise FetchError(body.get("message") or "Backend reported failure")
        data = body.get("data")
        if isinstance(data, list):
            return data
    raise FetchError("Malformed response body")


def unwrap_entity(body):
    """Accept ``{success, data: {...}}`` or the bare entity."""
    if isinstance(body, dict):
        if "success" in body:
            if not body["success"]:
                return None
            data = body.get("data")
            return data if isinstance(data, dict) else None
        return body
    return None


def _error_message(response, default):
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or default
    return default


class BackendService:
    def __init__(self, base_url=None, timeout=None, http=None):
        self.base_url = (base_url or settings.BLOODS_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT
        self.http = http or requests.Session()

    def url(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def call(self, method, path, **kwargs):
        """Issue one request; transport failures become ``FetchError``."""
        url = self.url(path)
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise FetchError(f"Could not reach the server: {exc}") from exc
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    def read_json(self, response):
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError("Malformed response body", response.status_code) from exc


# -------------------- blood requests --------------------
class BloodsService(BackendService):

    def list_requests(self):
        response = self.call("GET", "/bloods")
        if not response.ok:
            raise FetchError("Failed to load blood requests", response.status_code)
        items = unwrap_collection(self.read_json(response))
        return [BloodRequest.from_api(item) for item in items if isinstance(item, dict)]

    def get_request(self, request_id):
        response = self.call("GET", f"/bloods/{request_id}")
        if not response.ok:
            raise NotFoundError("Blood request not found", response.status_code)
        data = unwrap_entity(self.read_json(response))
        if data is None:
            raise NotFoundError("Blood request not found", response.status_code)
        return BloodRequest.from_api(data)

    def create_request(self, payload):
        if isinstance(payload, BloodRequest):
            payload = payload.to_payload()
        response = self.call("POST", "/bloods", json=payload)
        if not response.ok:
            raise ValidationError(
                _error_message(response, "Failed to create blood request"),
                response.status_code,
            )
        data = unwrap_entity(self.read_json(response))
        if data is None:
            raise ValidationError("Failed to create blood request", response.status_code)
        created = BloodRequest.from_api(data)
        logger.info("blood request %s created for %s", created.id, created.requester_email)
        return created

    def delete_request(self, request_id):
        try:
            response = self.call("DELETE", f"/bloods/{request_id}")
        except FetchError as exc:
            raise DeleteError(exc.message) from exc
        if not response.ok:
            raise DeleteError("Delete failed", response.status_code)
        logger.info("blood request %s deleted", request_id)


# -------------------- admin aggregates --------------------
class AdminService(BackendService):
    PANELS = ("users", "activities", "statistics")

    def get_users(self):
        return self._collection("/auth/users")

    def get_activities(self, limit=None):
        limit = limit or settings.ADMIN_ACTIVITY_LIMIT
        return self._collection("/auth/activities", params={"limit": limit})

    def get_statistics(self):
        response = self.call("GET", "/auth/statistics")
        if not response.ok:
            raise FetchError("Failed to load statistics", response.status_code)
        data = unwrap_entity(self.read_json(response))
        if data is None:
            raise FetchError("Failed to load statistics", response.status_code)
        return data

    def _collection(self, path, **kwargs):
        response = self.call("GET", path, **kwargs)
        if not response.ok:
            raise FetchError(f"Failed to load {path}", response.status_code)
        return unwrap_collection(self.read_json(response))

    def fetch_dashboard(self):
        """
        Fetch users, activities and statistics concurrently.
        Returns (results, errors); a failed panel is None in results and
        its message is in errors, the others are unaffected.
        """
        loaders = {
            "users": self.get_users,
            "activities": self.get_activities,
            "statistics": self.get_statistics,
        }
        results, errors = {}, {}
        with ThreadPoolExecutor(max_workers=len(loaders)) as pool:
            futures = {name: pool.submit(fn) for name, fn in loaders.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except FetchError as exc:
                    logger.warning("admin panel %s failed: %s", name, exc)
                    results[name] = None
                    errors[name] = exc.message
        return results, errors


# -------------------- authentication --------------------
class AuthService(BackendService):

    def login(self, email, password):
        return self._exchange("/api/auth/login", {"email": email, "password": password},
                              "Invalid email or password.")

    def register(self, name, email, password, blood_group=""):
        body = {"name": name, "email": email, "password": password, "bloodGroup": blood_group}
        return self._exchange("/api/auth/register", body, "Unable to register with these details.")

    def _exchange(self, path, body, failure_message):
        try:
            response = self.call("POST", path, json=body)
        except FetchError as exc:
            raise AuthError(exc.message) from exc
        if not response.ok:
            raise AuthError(_error_message(response, failure_message), response.status_code)
        try:
            data = response.json()
        except ValueError as exc:
            raise AuthError(failure_message, response.status_code) from exc
        if not isinstance(data, dict):
            raise AuthError(failure_message, response.status_code)
        user = data.get("user")
        if not (data.get("success") and isinstance(user, dict)):
            raise AuthError(failure_message, response.status_code)
        return Viewer.from_api(user)
