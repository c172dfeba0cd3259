from datetime import timedelta

import pytest
from django.utils import timezone

from bloodstock.allocator import InventoryAllocator
from bloodstock.models import Donor, Hospital, InventoryLot


@pytest.fixture
def now():
    return timezone.now()


@pytest.fixture
def allocator(now):
    return InventoryAllocator(clock=lambda: now)


@pytest.fixture
def make_lot(db, now):
    def _make(blood_group, units, status=InventoryLot.Status.AVAILABLE, expires_in_days=30, **extra):
        expiry = None if expires_in_days is None else now + timedelta(days=expires_in_days)
        return InventoryLot.objects.create(
            blood_group=blood_group, units=units, status=status, expiry_at=expiry, **extra
        )
    return _make


@pytest.fixture
def donor(db):
    return Donor.objects.create(full_name="Dana Levi", email="dana@example.org", blood_group="O-")


@pytest.fixture
def hospital(db):
    return Hospital.objects.create(name="Rambam Health Care Campus", registration_number="H-001")


@pytest.fixture
def units_by_status(db):
    def _totals(blood_group):
        totals = {}
        for lot in InventoryLot.objects.filter(blood_group=blood_group):
            totals[lot.status] = totals.get(lot.status, 0) + lot.units
        return totals
    return _totals
