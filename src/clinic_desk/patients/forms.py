"""Registration forms for the front desk."""

from django import forms
from django.contrib.auth import get_user_model
from django.core.validators import RegexValidator

from clinic_desk.queue.models import QueueEntry

from .models import Patient
from .nric import format_nric, is_valid_nric, parse_nric


phone_validator = RegexValidator(
    regex=r"^\+?[\d\s\-()]+$",
    message="Invalid phone number format",
)


class QuickRegistrationForm(forms.Form):
    """Walk-in registration: enough to identify the patient and queue them.

    Date of birth and gender may be omitted when a valid NRIC is given;
    they are then read from the NRIC.
    """

    full_name = forms.CharField(max_length=200)
    phone = forms.CharField(max_length=30, validators=[phone_validator])
    date_of_birth = forms.DateField(required=False)
    gender = forms.ChoiceField(choices=Patient.GENDER_CHOICES, required=False)
    nric = forms.CharField(max_length=14, required=False)
    email = forms.EmailField(required=False)
    allergies = forms.CharField(required=False)
    medical_history = forms.CharField(required=False)
    visit_reason = forms.CharField(max_length=255)
    payment_method = forms.ChoiceField(choices=QueueEntry.PAYMENT_METHOD_CHOICES)
    is_urgent = forms.BooleanField(required=False)
    doctor = forms.ModelChoiceField(
        queryset=get_user_model().objects.filter(is_active=True),
        required=False,
    )

    def clean_full_name(self):
        full_name = " ".join(self.cleaned_data["full_name"].split())
        if not full_name:
            raise forms.ValidationError("Full name is required")
        return full_name

    def clean_nric(self):
        nric = self.cleaned_data.get("nric", "").strip()
        if not nric:
            return ""
        nric = format_nric(nric)
        if not is_valid_nric(nric):
            raise forms.ValidationError("Invalid NRIC format (should be 123456-12-1234)")
        return nric

    def clean(self):
        cleaned_data = super().clean()
        details = parse_nric(cleaned_data.get("nric", ""))

        if not cleaned_data.get("date_of_birth"):
            if details is not None:
                cleaned_data["date_of_birth"] = details.date_of_birth
            elif "date_of_birth" not in self.errors:
                self.add_error("date_of_birth", "Date of birth is required")

        if not cleaned_data.get("gender"):
            if details is not None:
                cleaned_data["gender"] = details.gender
            elif "gender" not in self.errors:
                self.add_error("gender", "Gender is required")

        return cleaned_data

    def split_name(self):
        """Return (first_name, last_name); everything after the first word is the last name."""
        first, _, last = self.cleaned_data["full_name"].partition(" ")
        return first, last
