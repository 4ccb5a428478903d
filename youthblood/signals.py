# youthblood/signals.py
"""
Session change notifications. Senders pass ``request`` and ``viewer``;
anything interested in sign-in, sign-out or identity changes connects here.
"""
from django.dispatch import Signal, receiver

from .audit import log_event

session_started = Signal()
session_ended = Signal()
session_updated = Signal()


@receiver(session_started)
def _audit_login(sender, request, viewer, **kwargs):
    log_event(request, "login", viewer=viewer)


@receiver(session_ended)
def _audit_logout(sender, request, viewer, **kwargs):
    log_event(request, "logout", viewer=viewer)


@receiver(session_updated)
def _audit_profile(sender, request, viewer, **kwargs):
    log_event(request, "profile_update", viewer=viewer)
