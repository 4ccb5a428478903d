# youthblood/models.py
"""
Plain data types for the site. Nothing here is persisted locally: blood
requests live behind the external backend and the viewer identity lives in
the signed session token.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from django.db import models
from django.utils.dateparse import parse_date, parse_datetime

# -------------------- Constants --------------------
BLOOD_TYPES = [
    ("A+", "A+"), ("A-", "A-"),
    ("B+", "B+"), ("B-", "B-"),
    ("AB+", "AB+"), ("AB-", "AB-"),
    ("O+", "O+"), ("O-", "O-"),
]

MIN_UNITS = 1
MAX_UNITS = 10


class Role(models.TextChoices):
    USER = "user", "User"
    ADMIN = "admin", "Admin"


class Urgency(models.TextChoices):
    NORMAL = "normal", "Normal"
    URGENT = "urgent", "Urgent"
    EMERGENCY = "emergency", "Emergency"


class Status(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


# -------------------- Viewer --------------------
@dataclass(frozen=True)
class Viewer:
    """The signed-in identity, as carried by the session token."""

    user_id: str
    name: str
    email: str
    role: str = Role.USER
    blood_group: str = ""

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    @classmethod
    def from_api(cls, user: dict) -> "Viewer":
        return cls(
            user_id=str(user.get("id") or user.get("_id") or ""),
            name=user.get("name") or "",
            email=user.get("email") or "",
            role=user.get("role") or Role.USER,
            blood_group=user.get("bloodGroup") or user.get("bloodType") or "",
        )


# -------------------- Blood requests --------------------
# wire name -> attribute name
_WIRE_FIELDS = {
    "patientName": "patient_name",
    "bloodGroup": "blood_group",
    "requiredUnits": "required_units",
    "mobileNumber": "mobile_number",
    "hospitalName": "hospital_name",
    "location": "location",
    "sickDetails": "sick_details",
    "urgency": "urgency",
    "neededDate": "needed_date",
    "additionalInfo": "additional_info",
    "status": "status",
    "requestedBy": "requested_by",
    "requesterEmail": "requester_email",
    "requesterBloodGroup": "requester_blood_group",
}


def _as_date(value) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parse_date(str(value)[:10])
    except ValueError:
        return None


def _as_datetime(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return parse_datetime(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _as_units(value) -> Optional[int]:
    """Whole numbers only; 2.7 or "2.7" is not a unit count."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


@dataclass
class BloodRequest:
    id: str = ""
    patient_name: str = ""
    blood_group: str = ""
    required_units: Optional[int] = None
    mobile_number: str = ""
    hospital_name: str = ""
    location: str = ""
    sick_details: str = ""
    urgency: str = Urgency.NORMAL
    needed_date: Optional[date] = None
    additional_info: str = ""
    status: str = Status.PENDING
    requested_by: str = ""
    requester_email: str = ""
    requester_blood_group: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    extra: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict) -> "BloodRequest":
        kwargs = {}
        for wire, attr in _WIRE_FIELDS.items():
            if wire in data and data[wire] is not None:
                kwargs[attr] = data[wire]
        kwargs["required_units"] = _as_units(data.get("requiredUnits"))
        kwargs["needed_date"] = _as_date(data.get("neededDate"))
        known = set(_WIRE_FIELDS) | {"_id", "id", "createdAt", "updatedAt"}
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            created_at=_as_datetime(data.get("createdAt")),
            updated_at=_as_datetime(data.get("updatedAt")),
            extra={k: v for k, v in data.items() if k not in known},
            **kwargs,
        )

    def to_payload(self) -> dict:
        """camelCase body for POST /bloods; server-assigned fields are left out."""
        payload = {}
        for wire, attr in _WIRE_FIELDS.items():
            value = getattr(self, attr)
            if attr == "needed_date" and value:
                value = value.isoformat()
            payload[wire] = value
        return payload

    @property
    def display_name(self):
        return self.patient_name or "Anonymous Patient"

    @property
    def has_detail_page(self):
        # request ids are a single URL segment
        return bool(self.id) and "/" not in self.id

    @property
    def display_place(self):
        return self.hospital_name or self.location or "Location not specified"
