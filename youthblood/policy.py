# youthblood/policy.py
"""
Who may see and who may delete a blood request.

Used by the request list, detail, delete and export views so the rule lives
in one place.
"""


def _norm(value):
    return str(value or "").strip().lower()


def requester_of(blood_request):
    """requester_email, falling back to requested_by when the email is absent."""
    return _norm(blood_request.requester_email or blood_request.requested_by)


def is_owner(blood_request, viewer):
    if viewer is None:
        return False
    email = _norm(viewer.email)
    return bool(email) and requester_of(blood_request) == email


def can_view(blood_request, viewer):
    if viewer is None:
        return False
    return viewer.is_admin or is_owner(blood_request, viewer)


def can_delete(blood_request, viewer):
    if viewer is None:
        return False
    return viewer.is_admin or is_owner(blood_request, viewer)


def visible_requests(viewer, requests):
    """
    :param viewer: the signed-in Viewer (or None)
    :param requests: sequence of BloodRequest in server order
    :return: the full list for admins, otherwise only the viewer's own
             requests, order preserved
    """
    if viewer is None:
        return []
    if viewer.is_admin:
        return list(requests)
    return [r for r in requests if is_owner(r, viewer)]
