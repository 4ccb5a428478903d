# youthblood/forms.py
from django import forms
from django.core.validators import RegexValidator
from django.utils import timezone

from .models import BLOOD_TYPES, MAX_UNITS, MIN_UNITS, BloodRequest, Status, Urgency

# ---------------- Validators ----------------
phone_validator = RegexValidator(regex=r"^\+?[\d\s\-]{6,20}$",
                                 message="Enter a valid mobile number (digits, spaces and dashes).")
name_validator = RegexValidator(regex=r"^[^\d<>]{2,}$",
                                message="Name must be at least 2 characters and contain no digits.")

BLOOD_GROUP_CHOICES = [("", "Select Blood Group")] + BLOOD_TYPES


# ==================== Auth forms ====================
class LoginForm(forms.Form):
    email = forms.EmailField(label="Email Address",
                             widget=forms.EmailInput(attrs={"class": "form-control",
                                                            "placeholder": "Enter your email"}))
    password = forms.CharField(label="Password", strip=False,
                               widget=forms.PasswordInput(attrs={"class": "form-control",
                                                                 "placeholder": "Enter your password"}))


class RegisterForm(forms.Form):
    name = forms.CharField(label="Full name", max_length=120, validators=[name_validator],
                           widget=forms.TextInput(attrs={"class": "form-control", "placeholder": "Full name"}))
    email = forms.EmailField(label="Email Address",
                             widget=forms.EmailInput(attrs={"class": "form-control", "placeholder": "Email"}))
    blood_group = forms.ChoiceField(label="Blood group", required=False, choices=BLOOD_GROUP_CHOICES,
                                    widget=forms.Select(attrs={"class": "form-select"}))
    password1 = forms.CharField(label="Password", strip=False, min_length=6,
                                widget=forms.PasswordInput(attrs={"class": "form-control", "placeholder": "Password"}))
    password2 = forms.CharField(label="Confirm password", strip=False,
                                widget=forms.PasswordInput(attrs={"class": "form-control",
                                                                  "placeholder": "Confirm password"}))

    def clean(self):
        data = super().clean()
        if data.get("password1") and data.get("password1") != data.get("password2"):
            self.add_error("password2", "The two passwords do not match.")
        return data


# --------- Profile update ----------
class ProfileUpdateForm(forms.Form):
    name = forms.CharField(label="Full name", max_length=120, validators=[name_validator],
                           widget=forms.TextInput(attrs={"class": "form-control"}))
    blood_group = forms.ChoiceField(label="Blood group", required=False, choices=[("", "—")] + BLOOD_TYPES,
                                    widget=forms.Select(attrs={"class": "form-select"}))
    phone = forms.CharField(label="Phone", required=False, validators=[phone_validator],
                            widget=forms.TextInput(attrs={"class": "form-control", "inputmode": "tel"}))
    location = forms.CharField(label="Location", required=False, max_length=120,
                               widget=forms.TextInput(attrs={"class": "form-control"}))
    date_of_birth = forms.DateField(label="Date of birth", required=False,
                                    widget=forms.DateInput(attrs={"type": "date", "class": "form-control"}))

    def clean_date_of_birth(self):
        dob = self.cleaned_data.get("date_of_birth")
        if dob and dob > timezone.localdate():
            raise forms.ValidationError("Date of birth cannot be in the future.")
        return dob


# ==================== Domain forms ====================
class BloodRequestForm(forms.Form):
    patient_name = forms.CharField(label="Patient Name", max_length=120,
                                   widget=forms.TextInput(attrs={"class": "form-control",
                                                                 "placeholder": "Enter patient's full name"}))
    blood_group = forms.ChoiceField(label="Blood Group Needed", choices=BLOOD_GROUP_CHOICES,
                                    widget=forms.Select(attrs={"class": "form-select"}))
    mobile_number = forms.CharField(label="Mobile Number", validators=[phone_validator],
                                    widget=forms.TextInput(attrs={"class": "form-control", "type": "tel",
                                                                  "placeholder": "Enter mobile number"}))
    required_units = forms.IntegerField(label="Required Units", initial=MIN_UNITS,
                                        min_value=MIN_UNITS, max_value=MAX_UNITS,
                                        widget=forms.NumberInput(attrs={"class": "form-control",
                                                                        "min": str(MIN_UNITS),
                                                                        "max": str(MAX_UNITS)}))
    hospital_name = forms.CharField(label="Hospital Name", max_length=160,
                                    widget=forms.TextInput(attrs={"class": "form-control",
                                                                  "placeholder": "Enter hospital name"}))
    location = forms.CharField(label="Location", max_length=120,
                               widget=forms.TextInput(attrs={"class": "form-control",
                                                             "placeholder": "Enter city/district"}))
    sick_details = forms.CharField(label="Sickness Details",
                                   widget=forms.Textarea(attrs={"rows": 4, "class": "form-control",
                                                                "placeholder": "Describe the patient's condition "
                                                                               "and reason for blood requirement"}))
    urgency = forms.ChoiceField(label="Urgency Level", choices=Urgency.choices, initial=Urgency.NORMAL,
                                widget=forms.Select(attrs={"class": "form-select"}))
    needed_date = forms.DateField(label="Needed By Date",
                                  widget=forms.DateInput(attrs={"type": "date", "class": "form-control"}))
    additional_info = forms.CharField(label="Additional Information", required=False,
                                      widget=forms.Textarea(attrs={"rows": 3, "class": "form-control",
                                                                   "placeholder": "Any additional information "
                                                                                  "for donors..."}))

    def clean_needed_date(self):
        needed = self.cleaned_data["needed_date"]
        if needed < timezone.localdate():
            raise forms.ValidationError("The needed-by date cannot be in the past.")
        return needed

    def to_blood_request(self, viewer):
        """Build the request to submit, stamped with the requester's identity."""
        data = self.cleaned_data
        return BloodRequest(
            patient_name=data["patient_name"].strip(),
            blood_group=data["blood_group"],
            required_units=data["required_units"],
            mobile_number=data["mobile_number"].strip(),
            hospital_name=data["hospital_name"].strip(),
            location=data["location"].strip(),
            sick_details=data["sick_details"].strip(),
            urgency=data["urgency"],
            needed_date=data["needed_date"],
            additional_info=(data.get("additional_info") or "").strip(),
            status=Status.PENDING,
            requested_by=viewer.name or viewer.email,
            requester_email=viewer.email,
            requester_blood_group=viewer.blood_group,
        )
