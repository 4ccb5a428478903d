# youthblood/audit.py
import logging

audit_logger = logging.getLogger("youthblood.audit")


def _session_key(request):
    session = getattr(request, "session", None)
    if session is None:
        return ""
    return session.session_key or ""


def log_event(request, action, viewer=None, **details):
    """
    Write one audit line.
    viewer – override the identity shown (default: request.viewer).
    details – extra key/values appended to the line.
    """
    if viewer is None:
        viewer = getattr(request, "viewer", None)
    who = viewer.email if viewer else "anon"
    role = viewer.role if viewer else ""
    extra = " ".join(f"{k}={v}" for k, v in sorted(details.items()))
    audit_logger.info(
        "%s [%s] %s -> %s %s", _session_key(request)[:12], role, who, action, extra,
    )
