# youthblood/session.py
"""
The single source of the signed-in identity.

On sign-in a JWT carrying the viewer's claims is stored in the Django
session; ``ViewerMiddleware`` decodes it on every request into
``request.viewer``. Sign-in, sign-out and identity changes are announced
through the signals in ``youthblood.signals``.
"""
import enum
import logging
from datetime import timedelta

import jwt
from django.conf import settings
from django.utils import timezone

from .models import Viewer
from .signals import session_ended, session_started, session_updated

logger = logging.getLogger(__name__)

TOKEN_SESSION_KEY = "viewer_token"


class SessionState(enum.Enum):
    UNRESOLVED = "unresolved"
    ABSENT = "absent"
    PRESENT = "present"


# ------------------------ token ------------------------
def issue_token(viewer, now=None):
    now = now or timezone.now()
    claims = {
        "sub": str(viewer.user_id),
        "name": viewer.name,
        "email": viewer.email,
        "role": viewer.role,
        "bloodGroup": viewer.blood_group,
        "iat": now,
        "exp": now + timedelta(days=settings.SESSION_TOKEN_MAX_AGE_DAYS),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.SESSION_TOKEN_ALGORITHM)


def decode_token(token):
    """Return the Viewer in ``token``, or None if it is invalid or expired."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.SESSION_TOKEN_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("session token expired")
        return None
    except jwt.InvalidTokenError as exc:
        logger.warning("rejected session token: %s", exc)
        return None
    return Viewer(
        user_id=claims.get("sub", ""),
        name=claims.get("name", ""),
        email=claims.get("email", ""),
        role=claims.get("role") or "user",
        blood_group=claims.get("bloodGroup") or "",
    )


# ------------------------ resolution ------------------------
def get_viewer(request):
    token = request.session.get(TOKEN_SESSION_KEY)
    if not token:
        return None
    viewer = decode_token(token)
    if viewer is None:
        request.session.pop(TOKEN_SESSION_KEY, None)
    return viewer


def session_state(request):
    if not hasattr(request, "viewer"):
        return SessionState.UNRESOLVED
    if request.viewer is None:
        return SessionState.ABSENT
    return SessionState.PRESENT


class ViewerMiddleware:
    """Must sit after SessionMiddleware."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.viewer = get_viewer(request)
        return self.get_response(request)


# ------------------------ changes ------------------------
def sign_in(request, viewer):
    request.session.cycle_key()
    request.session[TOKEN_SESSION_KEY] = issue_token(viewer)
    request.viewer = viewer
    session_started.send(sender=Viewer, request=request, viewer=viewer)


def sign_out(request):
    viewer = getattr(request, "viewer", None)
    request.session.flush()
    request.viewer = None
    if viewer is not None:
        session_ended.send(sender=Viewer, request=request, viewer=viewer)


def update_identity(request, viewer):
    """Re-issue the token after the viewer's displayed identity changed."""
    request.session[TOKEN_SESSION_KEY] = issue_token(viewer)
    request.viewer = viewer
    session_updated.send(sender=Viewer, request=request, viewer=viewer)
