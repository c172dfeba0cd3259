# bloodstock/views.py
import json
import logging
from functools import wraps

from django.conf import settings
from django.db import DatabaseError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .allocator import InventoryAllocator
from .exceptions import InventoryStoreError
from .forms import (
    AllocateForm, AppointmentFilterForm, AppointmentForm, AppointmentStatusForm,
    BloodRequestFilterForm, BloodRequestForm, CompatibilityForm, CompatibleBloodForm,
    DonationFilterForm, DonationRecordForm, DonorFilterForm, DonorForm, EmergencyFilterForm,
    EmergencyStatusForm, HospitalFilterForm, HospitalForm, InventoryFilterForm, InventoryLotForm,
    LotStatusForm, TransferForm,
)
from .models import (
    BloodRequest, Donation, DonationAppointment, Donor, EmergencyNotification, Hospital, InventoryLot,
)
from .services import (
    cancel_appointment, fulfil_request, log_event, record_donation, schedule_appointment,
    upcoming_appointments, update_appointment_status, update_emergency_status,
)

logger = logging.getLogger(__name__)

ADMIN_ROLE_LABEL = "ADMIN"

allocator = InventoryAllocator()


# ------------------------ helpers ------------------------
def _payload(request):
    """Request data as a dict: JSON body, form body or query string."""
    if request.method == "GET":
        return request.GET
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
    return request.POST


def _bad_request(errors):
    return JsonResponse({"success": False, "errors": errors}, status=400)


def _not_found(what):
    return JsonResponse({"success": False, "message": f"{what} not found."}, status=404)


def _lot_dict(lot):
    return {
        "id": lot.pk,
        "blood_group": lot.blood_group,
        "units": lot.units,
        "status": lot.status,
        "expiry_at": lot.expiry_at,
        "hospital_id": lot.hospital_id,
        "donation_id": lot.donation_id,
        "created_at": lot.created_at,
        "updated_at": lot.updated_at,
    }


def _request_dict(req):
    return {
        "id": req.pk,
        "requester_name": req.requester_name,
        "hospital_id": req.hospital_id,
        "blood_group": req.blood_group,
        "units_needed": req.units_needed,
        "units_provided": req.units_provided,
        "priority": req.priority,
        "status": req.status,
        "plan": req.plan,
        "required_by": req.required_by,
        "created_at": req.created_at,
    }


def _donor_dict(donor):
    return {
        "id": donor.pk,
        "full_name": donor.full_name,
        "email": donor.email,
        "phone": donor.phone,
        "blood_group": donor.blood_group,
        "date_of_birth": donor.date_of_birth,
        "last_donation_at": donor.last_donation_at,
    }


def _hospital_dict(hospital):
    return {
        "id": hospital.pk,
        "name": hospital.name,
        "address": hospital.address,
        "contact_person": hospital.contact_person,
        "email": hospital.email,
        "phone": hospital.phone,
        "registration_number": hospital.registration_number,
        "status": hospital.status,
    }


def _donation_dict(donation):
    return {
        "id": donation.pk,
        "donor_id": donation.donor_id,
        "blood_group": donation.blood_group,
        "quantity_ml": donation.quantity_ml,
        "health_status": donation.health_status,
        "status": donation.status,
        "notes": donation.notes,
        "donated_at": donation.donated_at,
    }


def _appointment_dict(appointment):
    return {
        "id": appointment.pk,
        "donor_id": appointment.donor_id,
        "appointment_at": appointment.appointment_at,
        "location": appointment.location,
        "notes": appointment.notes,
        "confirmation_code": appointment.confirmation_code,
        "status": appointment.status,
        "reminder_sent": appointment.reminder_sent,
    }


def _emergency_dict(n):
    return {
        "id": n.pk,
        "blood_group": n.blood_group,
        "units_needed": n.units_needed,
        "hospital_id": n.hospital_id,
        "request_id": n.blood_request_id,
        "message": n.message,
        "status": n.status,
        "created_at": n.created_at,
        "updated_at": n.updated_at,
    }


def validated(form_class):
    """Bind the request payload to `form_class` and pass the valid form on."""
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            data = _payload(request)
            if data is None:
                return _bad_request({"__all__": ["Malformed JSON body."]})
            form = form_class(data)
            if not form.is_valid():
                return _bad_request(form.errors)
            return view_func(request, form, *args, **kwargs)
        return _wrapped
    return decorator


def listing(filter_form, queryset, to_dict):
    """GET handler returning `queryset` narrowed by the query-string filters."""
    @validated(filter_form)
    def _list(request, form):
        return JsonResponse({"results": [to_dict(obj) for obj in form.apply(queryset.all())]})
    return _list


def store_guarded(view_func):
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except InventoryStoreError as exc:
            return JsonResponse({"success": False, "message": str(exc)}, status=503)
        except DatabaseError:
            logger.exception("Store failure in %s", request.path)
            return JsonResponse({"success": False, "message": "Storage is unavailable."}, status=503)
    return _wrapped


# ------------------------ manager portal (password per call) ------------------------
def portal_protected(view_func):
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        pwd = (request.headers.get("X-Portal-Password") or "").strip()
        if pwd != (getattr(settings, "PORTAL_PASSWORD", "") or "change-me"):
            logger.warning("Rejected portal call to %s", request.path)
            return JsonResponse({"success": False, "message": "Incorrect portal password."}, status=403)
        return view_func(request, *args, **kwargs)
    return _wrapped


@portal_protected
def _delete(request, obj, action, **details):
    pk = obj.pk
    obj.delete()
    log_event(request, action, role=ADMIN_ROLE_LABEL, id=pk, **details)
    return JsonResponse({"success": True})


def _detail(request, obj, to_dict, action):
    """GET returns the object; DELETE removes it behind the portal password."""
    if request.method == "GET":
        return JsonResponse(to_dict(obj))
    return _delete(request, obj, action)


# ------------------------ inventory ------------------------
_inventory_list = listing(InventoryFilterForm, InventoryLot.objects.all(), _lot_dict)


@validated(InventoryLotForm)
def _inventory_create(request, form):
    lot = form.save()
    log_event(request, "inventory_add", lot=lot.pk, blood_group=lot.blood_group, units=lot.units)
    return JsonResponse(_lot_dict(lot), status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@store_guarded
def inventory_collection(request):
    if request.method == "GET":
        return _inventory_list(request)
    return _inventory_create(request)


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@store_guarded
def inventory_detail(request, pk: int):
    lot = get_object_or_404(InventoryLot, pk=pk)
    if request.method == "GET":
        return JsonResponse(_lot_dict(lot))
    return _delete(request, lot, "inventory_delete", blood_group=lot.blood_group, units=lot.units)


@csrf_exempt
@require_POST
@portal_protected
@store_guarded
@validated(LotStatusForm)
def inventory_status(request, form, pk: int):
    status = form.cleaned_data["status"]
    lot = allocator.update_status(pk, status)
    if lot is None:
        return _not_found("Inventory lot")
    log_event(request, "inventory_status", role=ADMIN_ROLE_LABEL, lot=pk, status=status)
    return JsonResponse(_lot_dict(lot))


@require_GET
@store_guarded
def inventory_stock(request):
    return JsonResponse(allocator.available_stock())


@require_GET
@store_guarded
def inventory_summary(request):
    return JsonResponse(allocator.summary())


@require_GET
@store_guarded
def inventory_expiring(request, days: int):
    return JsonResponse({"results": [_lot_dict(lot) for lot in allocator.expiring(days)]})


@csrf_exempt
@require_POST
@store_guarded
@validated(AllocateForm)
def inventory_allocate(request, form):
    blood_group = form.cleaned_data["blood_group"]
    units = form.cleaned_data["units"]
    if not allocator.allocate(blood_group, units):
        log_event(request, "allocate_failed", blood_group=blood_group, units=units, reason="insufficient_stock")
        return JsonResponse(
            {"success": False, "message": "Unable to allocate blood. Insufficient inventory."},
            status=400,
        )
    log_event(request, "allocate", blood_group=blood_group, units=units)
    return JsonResponse(
        {"success": True, "message": f"Successfully allocated {units} units of {blood_group} blood"}
    )


@csrf_exempt
@require_POST
@portal_protected
@store_guarded
@validated(TransferForm)
def inventory_transfer(request, form):
    source_id = form.cleaned_data["source_id"]
    target_id = form.cleaned_data["target_id"]
    units = form.cleaned_data["units"]
    if not allocator.transfer(source_id, target_id, units):
        return JsonResponse(
            {"success": False,
             "message": "Failed to transfer units. Please check source and target inventory items."},
            status=400,
        )
    log_event(request, "transfer", role=ADMIN_ROLE_LABEL, source=source_id, target=target_id, units=units)
    return JsonResponse({"success": True, "message": f"Successfully transferred {units} units"})


@require_GET
@validated(CompatibilityForm)
def compatibility(request, form):
    compatible = allocator.is_compatible(
        form.cleaned_data["recipient_blood_group"].strip().upper(),
        form.cleaned_data["donor_blood_group"].strip().upper(),
    )
    return JsonResponse({"compatible": compatible})


@require_GET
@store_guarded
@validated(CompatibleBloodForm)
def compatible_blood(request, form):
    return JsonResponse(
        allocator.find_compatible_blood(
            form.cleaned_data["recipient_blood_group"].strip().upper(),
            form.cleaned_data["units_needed"],
        )
    )


# ------------------------ donors / hospitals ------------------------
_donor_list = listing(DonorFilterForm, Donor.objects.all(), _donor_dict)


@validated(DonorForm)
def _donor_create(request, form):
    donor = form.save()
    log_event(request, "donor_create", id=donor.pk, blood_group=donor.blood_group)
    return JsonResponse(_donor_dict(donor), status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@store_guarded
def donor_collection(request):
    if request.method == "GET":
        return _donor_list(request)
    return _donor_create(request)


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@store_guarded
def donor_detail(request, pk: int):
    return _detail(request, get_object_or_404(Donor, pk=pk), _donor_dict, "donor_delete")


_hospital_list = listing(HospitalFilterForm, Hospital.objects.all(), _hospital_dict)


@validated(HospitalForm)
def _hospital_create(request, form):
    hospital = form.save()
    log_event(request, "hospital_create", id=hospital.pk, status=hospital.status)
    return JsonResponse(_hospital_dict(hospital), status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@store_guarded
def hospital_collection(request):
    if request.method == "GET":
        return _hospital_list(request)
    return _hospital_create(request)


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@store_guarded
def hospital_detail(request, pk: int):
    return _detail(request, get_object_or_404(Hospital, pk=pk), _hospital_dict, "hospital_delete")


# ------------------------ donations ------------------------
_donation_list = listing(DonationFilterForm, Donation.objects.all(), _donation_dict)


@require_GET
@store_guarded
def donation_collection(request):
    return _donation_list(request)


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@store_guarded
def donation_detail(request, pk: int):
    return _detail(request, get_object_or_404(Donation, pk=pk), _donation_dict, "donation_delete")


@csrf_exempt
@require_POST
@store_guarded
@validated(DonationRecordForm)
def donation_record(request, form):
    donation, lot = record_donation(
        form.cleaned_data["donor"],
        form.cleaned_data["quantity_ml"],
        health_status=form.cleaned_data["health_status"],
        notes=form.cleaned_data.get("notes", "").strip(),
    )
    log_event(
        request,
        "donation_create",
        donation=donation.pk,
        blood_group=donation.blood_group,
        lot=lot.pk if lot else None,
    )
    return JsonResponse(
        {"id": donation.pk, "status": donation.status, "inventory": _lot_dict(lot) if lot else None},
        status=201,
    )


# ------------------------ appointments ------------------------
_appointment_list = listing(AppointmentFilterForm, DonationAppointment.objects.all(), _appointment_dict)


@validated(AppointmentForm)
def _appointment_create(request, form):
    appointment = schedule_appointment(
        form.cleaned_data["donor"],
        form.cleaned_data["appointment_at"],
        location=form.cleaned_data.get("location", "").strip(),
        notes=form.cleaned_data.get("notes", "").strip(),
    )
    log_event(request, "appointment_scheduled", id=appointment.pk, donor=appointment.donor_id)
    return JsonResponse(_appointment_dict(appointment), status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@store_guarded
def appointment_collection(request):
    if request.method == "GET":
        return _appointment_list(request)
    return _appointment_create(request)


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@store_guarded
def appointment_detail(request, pk: int):
    appointment = get_object_or_404(DonationAppointment, pk=pk)
    return _detail(request, appointment, _appointment_dict, "appointment_delete")


@csrf_exempt
@require_POST
@portal_protected
@store_guarded
@validated(AppointmentStatusForm)
def appointment_status(request, form, pk: int):
    status = form.cleaned_data["status"]
    appointment = update_appointment_status(pk, status)
    if appointment is None:
        return _not_found("Appointment")
    log_event(request, "appointment_status", role=ADMIN_ROLE_LABEL, id=pk, status=status)
    return JsonResponse(_appointment_dict(appointment))


@csrf_exempt
@require_POST
@store_guarded
def appointment_cancel(request, pk: int):
    appointment = cancel_appointment(pk)
    if appointment is None:
        return _not_found("Appointment")
    log_event(request, "appointment_cancelled", id=pk)
    return JsonResponse(_appointment_dict(appointment))


@require_GET
@store_guarded
def donor_upcoming_appointments(request, pk: int):
    donor = get_object_or_404(Donor, pk=pk)
    return JsonResponse({"results": [_appointment_dict(a) for a in upcoming_appointments(donor)]})


# ------------------------ blood requests ------------------------
_request_list = listing(BloodRequestFilterForm, BloodRequest.objects.select_related("hospital"), _request_dict)


@validated(BloodRequestForm)
def _request_create(request, form):
    req = form.save()
    log_event(
        request,
        "blood_request_created",
        req_id=req.pk,
        blood_group=req.blood_group,
        units=req.units_needed,
        priority=req.priority,
    )
    return JsonResponse(_request_dict(req), status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@store_guarded
def request_collection(request):
    if request.method == "GET":
        return _request_list(request)
    return _request_create(request)


@csrf_exempt
@require_POST
@store_guarded
def request_fulfil(request, pk: int):
    req = get_object_or_404(BloodRequest, pk=pk)
    if req.status not in (BloodRequest.Status.PENDING, BloodRequest.Status.PARTIAL):
        return JsonResponse({"success": False, "message": "Request already processed."}, status=409)

    if not fulfil_request(req, allocator):
        log_event(request, "blood_request_unfulfilled", req_id=req.pk, blood_group=req.blood_group,
                  units=req.units_needed)
        return JsonResponse(
            {"success": False, "message": "Not enough compatible inventory to fulfil this request right now."},
            status=400,
        )
    log_event(request, "blood_request_fulfilled", req_id=req.pk, plan=req.plan)
    return JsonResponse({"success": True, "request": _request_dict(req)})


# ------------------------ emergencies ------------------------
_emergency_list = listing(EmergencyFilterForm, EmergencyNotification.objects.all(), _emergency_dict)


@require_GET
@store_guarded
def emergency_collection(request):
    return _emergency_list(request)


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@store_guarded
def emergency_detail(request, pk: int):
    notification = get_object_or_404(EmergencyNotification, pk=pk)
    return _detail(request, notification, _emergency_dict, "emergency_delete")


@csrf_exempt
@require_POST
@portal_protected
@store_guarded
@validated(EmergencyStatusForm)
def emergency_status(request, form, pk: int):
    status = form.cleaned_data["status"]
    notification = update_emergency_status(pk, status)
    if notification is None:
        return _not_found("Emergency notification")
    log_event(request, "emergency_status", role=ADMIN_ROLE_LABEL, id=pk, status=status)
    return JsonResponse(_emergency_dict(notification))
