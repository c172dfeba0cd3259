# bloodstock/models.py
from django.contrib.auth.models import User
from django.db import models

from .compat import BLOOD_GROUPS

# -------------------- Constants --------------------
BLOOD_GROUP_CHOICES = [(bg, bg) for bg in BLOOD_GROUPS]


# -------------------- Parties --------------------
class Hospital(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        INACTIVE = "INACTIVE", "Inactive"
        PENDING = "PENDING", "Pending"

    name = models.CharField("Name", max_length=120)
    address = models.CharField("Address", max_length=255, blank=True)
    contact_person = models.CharField("Contact person", max_length=120, blank=True)
    email = models.EmailField("Email", blank=True)
    phone = models.CharField("Phone", max_length=30, blank=True)
    registration_number = models.CharField("Registration number", max_length=50, unique=True)
    status = models.CharField("Status", max_length=10, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Donor(models.Model):
    full_name = models.CharField("Full name", max_length=120)
    email = models.EmailField("Email", blank=True)
    phone = models.CharField("Phone", max_length=30, blank=True)
    blood_group = models.CharField("Blood group", max_length=3, choices=BLOOD_GROUP_CHOICES)
    date_of_birth = models.DateField("Date of birth", null=True, blank=True)
    last_donation_at = models.DateTimeField("Last donation", null=True, blank=True)
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        ordering = ["full_name"]

    def __str__(self):
        return f"{self.full_name} ({self.blood_group})"


class Donation(models.Model):
    class Health(models.TextChoices):
        NORMAL = "NORMAL", "Normal"
        ABNORMAL = "ABNORMAL", "Abnormal"

    class Status(models.TextChoices):
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name="donations")
    blood_group = models.CharField("Blood group", max_length=3, choices=BLOOD_GROUP_CHOICES)
    quantity_ml = models.PositiveIntegerField("Quantity (ml)")
    donated_at = models.DateTimeField("Donation time", auto_now_add=True)
    health_status = models.CharField("Health status", max_length=10, choices=Health.choices,
                                     default=Health.NORMAL)
    # set from the health screening when the donation is recorded
    status = models.CharField("Status", max_length=10, choices=Status.choices)
    notes = models.TextField("Notes", blank=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        ordering = ["-donated_at"]

    def __str__(self):
        return f"{self.blood_group} {self.quantity_ml}ml - {self.donor.full_name}"


class DonationAppointment(models.Model):
    class Status(models.TextChoices):
        SCHEDULED = "SCHEDULED", "Scheduled"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"
        MISSED = "MISSED", "Missed"

    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name="appointments")
    appointment_at = models.DateTimeField("Appointment time", db_index=True)
    location = models.CharField("Location", max_length=255, blank=True)
    notes = models.TextField("Notes", blank=True)
    confirmation_code = models.CharField("Confirmation code", max_length=8, unique=True)
    status = models.CharField("Status", max_length=10, choices=Status.choices,
                              default=Status.SCHEDULED, db_index=True)
    reminder_sent = models.BooleanField("Reminder sent", default=False)
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        ordering = ["appointment_at", "id"]

    def __str__(self):
        return f"{self.donor.full_name} @ {self.appointment_at:%Y-%m-%d %H:%M} ({self.status})"


# -------------------- Inventory --------------------
class InventoryLot(models.Model):
    """A quantity of one blood group sharing one status and one expiry."""

    class Status(models.TextChoices):
        AVAILABLE = "AVAILABLE", "Available"
        RESERVED = "RESERVED", "Reserved"
        USED = "USED", "Used"
        EXPIRED = "EXPIRED", "Expired"

    blood_group = models.CharField("Blood group", max_length=3, choices=BLOOD_GROUP_CHOICES, db_index=True)
    units = models.PositiveIntegerField("Units", default=0)
    status = models.CharField("Status", max_length=10, choices=Status.choices,
                              default=Status.AVAILABLE, db_index=True)
    expiry_at = models.DateTimeField("Expiry at", null=True, blank=True)
    hospital = models.ForeignKey(Hospital, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name="inventory_lots")
    donation = models.ForeignKey(Donation, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name="inventory_lots")
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        ordering = ["blood_group", "expiry_at", "id"]

    def __str__(self):
        return f"Lot #{self.pk} {self.blood_group} x{self.units} [{self.status}]"

    # Each helper persists its own change together with updated_at.
    def mark_reserved(self):
        self.status = self.Status.RESERVED
        self.save(update_fields=["status", "updated_at"])

    def split_off(self, units: int) -> "InventoryLot":
        """
        Carve `units` out of this lot into a new RESERVED lot with the same
        group, expiry and lineage. This lot keeps its status.
        """
        if units <= 0 or units >= self.units:
            raise ValueError(f"cannot split {units} unit(s) off a lot of {self.units}")
        reserved = InventoryLot.objects.create(
            blood_group=self.blood_group,
            units=units,
            status=self.Status.RESERVED,
            expiry_at=self.expiry_at,
            hospital_id=self.hospital_id,
            donation_id=self.donation_id,
        )
        self.units -= units
        self.save(update_fields=["units", "updated_at"])
        return reserved

    def adjust_units(self, delta: int):
        self.units += delta
        self.save(update_fields=["units", "updated_at"])


# -------------------- Demand --------------------
class BloodRequest(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PARTIAL = "PARTIAL", "Partial"
        FULFILLED = "FULFILLED", "Fulfilled"
        CANCELLED = "CANCELLED", "Cancelled"

    class Priority(models.TextChoices):
        EMERGENCY = "EMERGENCY", "Emergency"
        URGENT = "URGENT", "Urgent"
        NORMAL = "NORMAL", "Normal"
        LOW = "LOW", "Low"

    requester_name = models.CharField("Requester name", max_length=120)
    email = models.EmailField("Email", blank=True)
    phone = models.CharField("Phone", max_length=30, blank=True)
    hospital = models.ForeignKey(Hospital, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name="blood_requests")
    blood_group = models.CharField("Blood group", max_length=3, choices=BLOOD_GROUP_CHOICES)
    units_needed = models.PositiveIntegerField("Units needed", default=1)
    units_provided = models.PositiveIntegerField("Units provided", default=0)
    priority = models.CharField("Priority", max_length=10, choices=Priority.choices, default=Priority.NORMAL)
    status = models.CharField("Status", max_length=10, choices=Status.choices,
                              default=Status.PENDING, db_index=True)
    reason = models.TextField("Reason", blank=True)
    required_by = models.DateTimeField("Required by", null=True, blank=True)
    plan = models.JSONField("Allocation plan", default=dict, blank=True)
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Req {self.blood_group} x{self.units_needed} ({self.priority}) - {self.requester_name}"

    @property
    def units_outstanding(self) -> int:
        return max(self.units_needed - self.units_provided, 0)


class EmergencyNotification(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        RESOLVED = "RESOLVED", "Resolved"

    blood_group = models.CharField("Blood group", max_length=3, choices=BLOOD_GROUP_CHOICES)
    units_needed = models.PositiveIntegerField("Units needed")
    hospital = models.ForeignKey(Hospital, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name="emergencies")
    blood_request = models.ForeignKey(BloodRequest, on_delete=models.SET_NULL, null=True, blank=True,
                                      related_name="emergencies")
    message = models.TextField("Message")
    status = models.CharField("Status", max_length=10, choices=Status.choices,
                              default=Status.ACTIVE, db_index=True)
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"EMERGENCY {self.blood_group} x{self.units_needed} ({self.status})"


# -------------------- Audit --------------------
class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    role = models.CharField("Role at time", max_length=20, blank=True)
    action = models.CharField("Action", max_length=50)
    details = models.JSONField("Details", default=dict, blank=True)
    created_at = models.DateTimeField("Created at", auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        who = self.user.username if self.user else "anon"
        return f"{self.created_at:%Y-%m-%d %H:%M} [{self.role}] {who} -> {self.action}"
