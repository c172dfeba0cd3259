# bloodstock/forms.py
from django import forms
from django.core.validators import RegexValidator
from django.utils import timezone

from .models import (
    BLOOD_GROUP_CHOICES, BloodRequest, Donation, DonationAppointment, Donor,
    EmergencyNotification, Hospital, InventoryLot,
)

# ---------------- Validators ----------------
phone_validator = RegexValidator(regex=r"^\+?[\d\s\-]{6,20}$",
                                 message="Phone may contain digits, spaces, hyphens and a leading +.")
name_validator = RegexValidator(regex=r"^[^\W\d_][\w\s'.\-]+$",
                                message="Name may contain letters, spaces, apostrophes, dots and hyphens only.")


class OptionalDefaultsMixin:
    """Fields listed here may be omitted; the model default is kept."""
    optional_fields = ()

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name in self.optional_fields:
            self.fields[name].required = False


class FilterForm(forms.Form):
    """
    Optional query-string filters for a listing. Every field is optional;
    `lookups` maps a field to its ORM lookup when the names differ.
    """
    lookups = {}

    def apply(self, qs):
        for name, value in self.cleaned_data.items():
            if value in (None, ""):
                continue
            qs = qs.filter(**{self.lookups.get(name, name): value})
        return qs


# ==================== Parties ====================
class DonorForm(forms.ModelForm):
    full_name = forms.CharField(max_length=120, validators=[name_validator])
    phone = forms.CharField(max_length=30, required=False, validators=[phone_validator])

    class Meta:
        model = Donor
        fields = ["full_name", "email", "phone", "blood_group", "date_of_birth"]


class DonorFilterForm(FilterForm):
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False)


class HospitalForm(OptionalDefaultsMixin, forms.ModelForm):
    optional_fields = ("status",)
    phone = forms.CharField(max_length=30, required=False, validators=[phone_validator])

    class Meta:
        model = Hospital
        fields = ["name", "address", "contact_person", "email", "phone", "registration_number", "status"]


class HospitalFilterForm(FilterForm):
    status = forms.ChoiceField(choices=Hospital.Status.choices, required=False)


# ==================== Supply ====================
class DonationRecordForm(forms.Form):
    donor = forms.ModelChoiceField(queryset=Donor.objects.all())
    quantity_ml = forms.IntegerField(min_value=1, max_value=1000)
    health_status = forms.ChoiceField(choices=Donation.Health.choices, required=False)
    notes = forms.CharField(required=False, max_length=1000)

    def clean_health_status(self):
        return self.cleaned_data.get("health_status") or Donation.Health.NORMAL


class DonationFilterForm(FilterForm):
    lookups = {"donor": "donor_id"}
    donor = forms.IntegerField(min_value=1, required=False)
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False)
    status = forms.ChoiceField(choices=Donation.Status.choices, required=False)


class AppointmentForm(forms.Form):
    donor = forms.ModelChoiceField(queryset=Donor.objects.all())
    appointment_at = forms.DateTimeField()
    location = forms.CharField(required=False, max_length=255)
    notes = forms.CharField(required=False, max_length=1000)

    def clean_appointment_at(self):
        value = self.cleaned_data["appointment_at"]
        if value <= timezone.now():
            raise forms.ValidationError("Appointments must be scheduled in the future.")
        return value


class AppointmentStatusForm(forms.Form):
    status = forms.ChoiceField(choices=DonationAppointment.Status.choices)


class AppointmentFilterForm(FilterForm):
    lookups = {"donor": "donor_id", "start": "appointment_at__gte", "end": "appointment_at__lte"}
    donor = forms.IntegerField(min_value=1, required=False)
    status = forms.ChoiceField(choices=DonationAppointment.Status.choices, required=False)
    start = forms.DateTimeField(required=False)
    end = forms.DateTimeField(required=False)


# ==================== Inventory ====================
class InventoryLotForm(OptionalDefaultsMixin, forms.ModelForm):
    optional_fields = ("status",)

    class Meta:
        model = InventoryLot
        fields = ["blood_group", "units", "status", "expiry_at", "hospital", "donation"]


class InventoryFilterForm(FilterForm):
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False)
    status = forms.ChoiceField(choices=InventoryLot.Status.choices, required=False)


class LotStatusForm(forms.Form):
    status = forms.ChoiceField(choices=InventoryLot.Status.choices)


class AllocateForm(forms.Form):
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES)
    units = forms.IntegerField(min_value=0)


class TransferForm(forms.Form):
    source_id = forms.IntegerField(min_value=1)
    target_id = forms.IntegerField(min_value=1)
    units = forms.IntegerField(min_value=1)

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("source_id") and cleaned.get("source_id") == cleaned.get("target_id"):
            raise forms.ValidationError("Source and target lots must differ.")
        return cleaned


class CompatibilityForm(forms.Form):
    # free text on purpose: unknown groups answer "not compatible"
    recipient_blood_group = forms.CharField(max_length=3)
    donor_blood_group = forms.CharField(max_length=3)


class CompatibleBloodForm(forms.Form):
    recipient_blood_group = forms.CharField(max_length=3)
    units_needed = forms.IntegerField(min_value=0, required=False)

    def clean_units_needed(self):
        value = self.cleaned_data.get("units_needed")
        return 1 if value is None else value


# ==================== Demand ====================
class BloodRequestForm(OptionalDefaultsMixin, forms.ModelForm):
    optional_fields = ("priority",)
    requester_name = forms.CharField(max_length=120, validators=[name_validator])
    phone = forms.CharField(max_length=30, required=False, validators=[phone_validator])
    units_needed = forms.IntegerField(min_value=1, max_value=100)

    class Meta:
        model = BloodRequest
        fields = [
            "requester_name", "email", "phone", "hospital", "blood_group",
            "units_needed", "priority", "reason", "required_by",
        ]


class BloodRequestFilterForm(FilterForm):
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False)
    status = forms.ChoiceField(choices=BloodRequest.Status.choices, required=False)
    priority = forms.ChoiceField(choices=BloodRequest.Priority.choices, required=False)


class EmergencyStatusForm(forms.Form):
    status = forms.ChoiceField(choices=EmergencyNotification.Status.choices)


class EmergencyFilterForm(FilterForm):
    lookups = {"hospital": "hospital_id"}
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False)
    status = forms.ChoiceField(choices=EmergencyNotification.Status.choices, required=False)
    hospital = forms.IntegerField(min_value=1, required=False)
