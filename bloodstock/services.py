# bloodstock/services.py
import logging
import uuid
from contextlib import contextmanager
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from .allocator import InventoryAllocator
from .compat import plan_dispense
from .exceptions import InventoryStoreError
from .models import (
    AuditEvent, BloodRequest, Donation, DonationAppointment, EmergencyNotification, InventoryLot,
)

logger = logging.getLogger(__name__)


@contextmanager
def _store(operation):
    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        logger.exception("Store failure during %s", operation)
        raise InventoryStoreError(operation) from exc


# ------------------------ audit ------------------------
def log_event(request, action, role=None, **details):
    """
    Create AuditEvent.
    role – label shown on the row (default: staff/anon from the request user).
    details – extra dict persisted.
    """
    user = None
    if request is not None and request.user.is_authenticated:
        user = request.user
    if role is None:
        role = "STAFF" if user is not None and user.is_staff else ""
    AuditEvent.objects.create(user=user, role=role, action=action, details=details)
    logger.debug("audit %s %s", action, details)


# ------------------------ supply ------------------------
def record_donation(donor, quantity_ml: int, health_status=Donation.Health.NORMAL, notes=""):
    """
    Save a donation for `donor`; a healthy one is APPROVED and also becomes an
    AVAILABLE lot of quantity_ml // UNIT_VOLUME_ML units, an abnormal one is
    REJECTED.
    Returns (donation, lot) where lot is None when nothing went to stock.
    """
    unit_ml = getattr(settings, "UNIT_VOLUME_ML", 450)
    shelf_days = getattr(settings, "SHELF_LIFE_DAYS", 42)
    now = timezone.now()
    healthy = health_status == Donation.Health.NORMAL

    with _store("record_donation"):
        donation = Donation.objects.create(
            donor=donor,
            blood_group=donor.blood_group,
            quantity_ml=quantity_ml,
            health_status=health_status,
            status=Donation.Status.APPROVED if healthy else Donation.Status.REJECTED,
            notes=notes,
        )
        donor.last_donation_at = now
        donor.save(update_fields=["last_donation_at", "updated_at"])

        lot = None
        units = quantity_ml // unit_ml
        if healthy and units > 0:
            lot = InventoryLot.objects.create(
                blood_group=donor.blood_group,
                units=units,
                status=InventoryLot.Status.AVAILABLE,
                expiry_at=now + timedelta(days=shelf_days),
                donation=donation,
            )

    if lot:
        logger.info("Donation #%s added lot #%s (%s x%d)", donation.pk, lot.pk, lot.blood_group, lot.units)
    else:
        logger.info("Donation #%s recorded without stock (%s, %dml)", donation.pk, health_status, quantity_ml)
    return donation, lot


# ------------------------ appointments ------------------------
def schedule_appointment(donor, appointment_at, location="", notes=""):
    with _store("schedule_appointment"):
        appointment = DonationAppointment.objects.create(
            donor=donor,
            appointment_at=appointment_at,
            location=location,
            notes=notes,
            confirmation_code=uuid.uuid4().hex[:8].upper(),
        )
    logger.info("Appointment #%s scheduled for donor #%s at %s", appointment.pk, donor.pk, appointment_at)
    return appointment


def update_appointment_status(appointment_id, status):
    """Returns the updated appointment, or None for an unknown id or status."""
    if status not in DonationAppointment.Status.values:
        return None
    with _store("update_appointment_status"):
        appointment = DonationAppointment.objects.select_for_update().filter(pk=appointment_id).first()
        if appointment is None:
            return None
        appointment.status = status
        appointment.save(update_fields=["status", "updated_at"])
    return appointment


def cancel_appointment(appointment_id):
    return update_appointment_status(appointment_id, DonationAppointment.Status.CANCELLED)


def upcoming_appointments(donor, now=None):
    now = now or timezone.now()
    return donor.appointments.filter(
        status=DonationAppointment.Status.SCHEDULED, appointment_at__gt=now,
    ).order_by("appointment_at")


def appointments_needing_reminders(hours=24, now=None):
    """SCHEDULED appointments in the next `hours` that have not been reminded yet."""
    now = now or timezone.now()
    return DonationAppointment.objects.filter(
        status=DonationAppointment.Status.SCHEDULED,
        reminder_sent=False,
        appointment_at__gte=now,
        appointment_at__lte=now + timedelta(hours=hours),
    ).select_related("donor")


def mark_reminder_sent(appointment_id):
    with _store("mark_reminder_sent"):
        updated = DonationAppointment.objects.filter(pk=appointment_id).update(
            reminder_sent=True, updated_at=timezone.now(),
        )
    return bool(updated)


# ------------------------ emergencies ------------------------
def raise_emergency(blood_group, units_needed, hospital=None, blood_request=None, message=""):
    if not message:
        where = f" at {hospital.name}" if hospital else ""
        message = f"Emergency need for {units_needed} unit(s) of {blood_group}{where}."
    with _store("raise_emergency"):
        notification = EmergencyNotification.objects.create(
            blood_group=blood_group,
            units_needed=units_needed,
            hospital=hospital,
            blood_request=blood_request,
            message=message,
        )
    logger.warning("Emergency notification #%s: %s", notification.pk, message)
    return notification


def update_emergency_status(notification_id, status):
    """Returns the updated notification, or None for an unknown id or status."""
    if status not in EmergencyNotification.Status.values:
        return None
    with _store("update_emergency_status"):
        notification = EmergencyNotification.objects.select_for_update().filter(pk=notification_id).first()
        if notification is None:
            return None
        notification.status = status
        notification.save(update_fields=["status", "updated_at"])
    logger.info("Emergency notification #%s -> %s", notification.pk, status)
    return notification


# ------------------------ demand ------------------------
def fulfil_request(blood_request: BloodRequest, allocator: InventoryAllocator | None = None) -> bool:
    """
    Reserve stock for the outstanding units of a request, spreading over
    compatible groups in dispense-priority order. All-or-nothing. Emergencies
    raised for the request are resolved once it is fulfilled.
    """
    allocator = allocator or InventoryAllocator()
    if blood_request.status not in (BloodRequest.Status.PENDING, BloodRequest.Status.PARTIAL):
        return False

    needed = blood_request.units_outstanding
    plan, shortfall = plan_dispense(blood_request.blood_group, needed, allocator.available_stock())
    if shortfall:
        logger.info("Request #%s short by %d unit(s) of %s", blood_request.pk, shortfall, blood_request.blood_group)
        if blood_request.priority == BloodRequest.Priority.EMERGENCY:
            raise_emergency(
                blood_request.blood_group,
                shortfall,
                hospital=blood_request.hospital,
                blood_request=blood_request,
            )
        return False

    with _store("fulfil_request"):
        for group, units in plan.items():
            if not allocator.allocate(group, units):
                # stock moved between planning and locking
                transaction.set_rollback(True)
                return False
        blood_request.units_provided = blood_request.units_needed
        blood_request.status = BloodRequest.Status.FULFILLED
        blood_request.plan = plan
        blood_request.save(update_fields=["units_provided", "status", "plan", "updated_at"])
        blood_request.emergencies.filter(status=EmergencyNotification.Status.ACTIVE).update(
            status=EmergencyNotification.Status.RESOLVED, updated_at=timezone.now(),
        )

    logger.info("Request #%s fulfilled with %s", blood_request.pk, plan)
    return True
