from datetime import timedelta

import pytest
from django.db import DatabaseError

from bloodstock.allocator import CRITICAL_STOCK_THRESHOLD, InventoryAllocator
from bloodstock.compat import BLOOD_GROUPS
from bloodstock.exceptions import InventoryStoreError
from bloodstock.models import InventoryLot

pytestmark = pytest.mark.django_db

AVAILABLE = InventoryLot.Status.AVAILABLE
RESERVED = InventoryLot.Status.RESERVED


# ------------------------ stock ------------------------
def test_stock_lists_every_group_even_when_empty(allocator):
    assert allocator.available_stock() == {bg: 0 for bg in BLOOD_GROUPS}


def test_stock_counts_only_available_unexpired_lots(allocator, make_lot):
    make_lot("A+", 4)
    make_lot("A+", 3, expires_in_days=None)
    make_lot("A+", 10, status=RESERVED)
    make_lot("A+", 8, expires_in_days=-1)
    make_lot("B-", 2, status=InventoryLot.Status.USED)

    stock = allocator.available_stock()
    assert stock["A+"] == 7
    assert stock["B-"] == 0
    assert set(stock) == set(BLOOD_GROUPS)


def test_find_compatible_blood_skips_empty_groups(allocator, make_lot):
    make_lot("O-", 2)
    make_lot("A+", 0)
    make_lot("AB+", 1)
    make_lot("B+", 4, status=RESERVED)

    assert allocator.find_compatible_blood("AB+", 1) == {"O-": 2, "AB+": 1}


def test_find_compatible_blood_ignores_units_needed(allocator, make_lot):
    make_lot("O-", 1)
    make_lot("O+", 1)
    assert allocator.find_compatible_blood("O+", 50) == {"O-": 1, "O+": 1}


def test_find_compatible_blood_unknown_recipient(allocator, make_lot):
    make_lot("O-", 5)
    assert allocator.find_compatible_blood("XY", 1) == {}


def test_is_compatible_uses_injected_table():
    custom = InventoryAllocator(compatibility={"A+": frozenset({"O-"})})
    assert custom.is_compatible("O-", "A+") is True
    assert custom.is_compatible("A+", "A+") is False


# ------------------------ allocation ------------------------
def test_allocate_splits_single_lot(allocator, make_lot):
    make_lot("O-", 10)

    assert allocator.allocate("O-", 4) is True

    lots = sorted(InventoryLot.objects.filter(blood_group="O-"), key=lambda lot: lot.status)
    assert [(lot.status, lot.units) for lot in lots] == [(AVAILABLE, 6), (RESERVED, 4)]


def test_split_keeps_expiry_and_lineage(allocator, make_lot, hospital):
    original = make_lot("B+", 5, hospital=hospital)

    assert allocator.allocate("B+", 2) is True

    reserved = InventoryLot.objects.get(blood_group="B+", status=RESERVED)
    assert reserved.pk != original.pk
    assert reserved.expiry_at == original.expiry_at
    assert reserved.hospital_id == hospital.pk


def test_allocate_insufficient_stock_changes_nothing(allocator, make_lot):
    lot = make_lot("A+", 3)

    assert allocator.allocate("A+", 5) is False

    lot.refresh_from_db()
    assert (lot.status, lot.units) == (AVAILABLE, 3)
    assert InventoryLot.objects.count() == 1
    assert allocator.available_stock()["A+"] == 3


def test_allocate_uses_soonest_expiring_lots_first(allocator, make_lot):
    later = make_lot("A-", 3, expires_in_days=5)
    sooner = make_lot("A-", 4, expires_in_days=2)
    no_expiry = make_lot("A-", 5, expires_in_days=None)

    assert allocator.allocate("A-", 6) is True

    for lot in (later, sooner, no_expiry):
        lot.refresh_from_db()
    assert (sooner.status, sooner.units) == (RESERVED, 4)
    assert (later.status, later.units) == (AVAILABLE, 1)
    assert (no_expiry.status, no_expiry.units) == (AVAILABLE, 5)
    assert InventoryLot.objects.get(blood_group="A-", status=RESERVED, units=2).expiry_at == later.expiry_at


@pytest.mark.parametrize("requested", [1, 3, 7, 9, 12])
def test_allocate_conserves_units(allocator, make_lot, units_by_status, requested):
    make_lot("AB-", 3, expires_in_days=1)
    make_lot("AB-", 4, expires_in_days=2)
    make_lot("AB-", 5, expires_in_days=3)
    before = units_by_status("AB-")

    assert allocator.allocate("AB-", requested) is True

    after = units_by_status("AB-")
    assert after[RESERVED] == requested
    assert after.get(AVAILABLE, 0) == before[AVAILABLE] - requested
    assert sum(after.values()) == sum(before.values())


def test_allocate_ignores_expired_and_reserved_stock(allocator, make_lot):
    make_lot("O+", 10, expires_in_days=-1)
    make_lot("O+", 10, status=RESERVED)
    make_lot("O+", 2)

    assert allocator.allocate("O+", 3) is False
    assert allocator.available_stock()["O+"] == 2


def test_allocate_zero_units_is_a_no_op(allocator, make_lot):
    lot = make_lot("B-", 2)
    assert allocator.allocate("B-", 0) is True
    lot.refresh_from_db()
    assert (lot.status, lot.units) == (AVAILABLE, 2)


def test_allocate_rejects_bad_input(allocator, make_lot):
    make_lot("B-", 2)
    assert allocator.allocate("B-", -1) is False
    assert allocator.allocate("Q+", 1) is False
    assert allocator.available_stock()["B-"] == 2


def test_failed_allocate_leaves_other_groups_alone(allocator, make_lot):
    for bg in BLOOD_GROUPS:
        make_lot(bg, 2)
    before = allocator.available_stock()

    assert allocator.allocate("O-", 3) is False
    assert allocator.available_stock() == before


def test_allocate_wraps_store_failures(allocator, make_lot, monkeypatch):
    make_lot("A+", 5)

    def broken(self, now=None):
        raise DatabaseError("connection lost")

    monkeypatch.setattr(InventoryAllocator, "_available_qs", broken)
    with pytest.raises(InventoryStoreError) as excinfo:
        allocator.allocate("A+", 1)
    assert excinfo.value.operation == "allocate"
    assert isinstance(excinfo.value.__cause__, DatabaseError)


def test_allocate_rolls_back_lots_already_reserved(allocator, make_lot, monkeypatch):
    first = make_lot("A+", 3, expires_in_days=1)
    second = make_lot("A+", 5, expires_in_days=2)
    reserved = []
    original_mark_reserved = InventoryLot.mark_reserved

    def tracking_mark_reserved(self):
        original_mark_reserved(self)
        reserved.append(self.pk)

    def broken_split(self, units):
        raise DatabaseError("disk full")

    monkeypatch.setattr(InventoryLot, "mark_reserved", tracking_mark_reserved)
    monkeypatch.setattr(InventoryLot, "split_off", broken_split)
    with pytest.raises(InventoryStoreError) as excinfo:
        allocator.allocate("A+", 4)

    assert excinfo.value.operation == "allocate"
    assert reserved == [first.pk]
    for lot in (first, second):
        lot.refresh_from_db()
    assert (first.status, first.units) == (AVAILABLE, 3)
    assert (second.status, second.units) == (AVAILABLE, 5)
    assert not InventoryLot.objects.filter(status=RESERVED).exists()
    assert InventoryLot.objects.count() == 2


def test_split_off_rejects_whole_lot(make_lot):
    lot = make_lot("A+", 3)
    with pytest.raises(ValueError):
        lot.split_off(3)


# ------------------------ transfer ------------------------
def test_transfer_moves_units(allocator, make_lot):
    source = make_lot("A+", 8)
    target = make_lot("A+", 1, status=RESERVED)

    assert allocator.transfer(source.pk, target.pk, 5) is True

    source.refresh_from_db()
    target.refresh_from_db()
    assert (source.units, target.units) == (3, 6)
    assert target.status == RESERVED


def test_transfer_between_groups_is_refused(allocator, make_lot):
    source = make_lot("A+", 8)
    target = make_lot("B+", 1)

    assert allocator.transfer(source.pk, target.pk, 2) is False

    source.refresh_from_db()
    target.refresh_from_db()
    assert (source.units, target.units) == (8, 1)


def test_transfer_needs_enough_source_units(allocator, make_lot):
    source = make_lot("O-", 2)
    target = make_lot("O-", 2)

    assert allocator.transfer(source.pk, target.pk, 3) is False
    assert allocator.transfer(source.pk, target.pk, 2) is True

    source.refresh_from_db()
    target.refresh_from_db()
    assert (source.units, target.units) == (0, 4)


def test_transfer_with_missing_or_same_lot(allocator, make_lot):
    lot = make_lot("O-", 4)
    assert allocator.transfer(lot.pk, 999999, 1) is False
    assert allocator.transfer(999999, lot.pk, 1) is False
    assert allocator.transfer(lot.pk, lot.pk, 1) is False
    lot.refresh_from_db()
    assert lot.units == 4


def test_transfer_rejects_non_positive_units(allocator, make_lot):
    source = make_lot("O-", 4)
    target = make_lot("O-", 4)
    assert allocator.transfer(source.pk, target.pk, 0) is False
    assert allocator.transfer(source.pk, target.pk, -2) is False


def test_transfer_rolls_back_source_when_target_write_fails(allocator, make_lot, monkeypatch):
    source = make_lot("B-", 6)
    target = make_lot("B-", 1)
    original_adjust = InventoryLot.adjust_units
    applied = []

    def failing_on_credit(self, delta):
        if delta > 0:
            raise DatabaseError("connection reset")
        original_adjust(self, delta)
        applied.append((self.pk, delta))

    monkeypatch.setattr(InventoryLot, "adjust_units", failing_on_credit)
    with pytest.raises(InventoryStoreError) as excinfo:
        allocator.transfer(source.pk, target.pk, 4)

    assert excinfo.value.operation == "transfer"
    assert isinstance(excinfo.value.__cause__, DatabaseError)
    assert applied == [(source.pk, -4)]
    source.refresh_from_db()
    target.refresh_from_db()
    assert (source.units, target.units) == (6, 1)


# ------------------------ status / expiry ------------------------
def test_update_status(allocator, make_lot):
    lot = make_lot("B+", 3)
    updated = allocator.update_status(lot.pk, InventoryLot.Status.USED)
    assert updated.status == InventoryLot.Status.USED
    assert allocator.update_status(lot.pk, "LOST") is None
    assert allocator.update_status(999999, InventoryLot.Status.USED) is None


def test_expire_lots_sweeps_only_past_expiry(allocator, make_lot, now):
    stale = make_lot("A-", 2, expires_in_days=-2)
    fresh = make_lot("A-", 2, expires_in_days=2)
    reserved = make_lot("A-", 2, status=RESERVED, expires_in_days=-2)

    assert allocator.expire_lots() == 1

    for lot in (stale, fresh, reserved):
        lot.refresh_from_db()
    assert stale.status == InventoryLot.Status.EXPIRED
    assert fresh.status == AVAILABLE
    assert reserved.status == RESERVED
    assert allocator.expire_lots(now + timedelta(days=3)) == 1


def test_expiring_lists_lots_in_window(allocator, make_lot):
    soon = make_lot("AB+", 1, expires_in_days=1)
    make_lot("AB+", 1, expires_in_days=20)
    make_lot("AB+", 1, expires_in_days=-1)
    make_lot("AB+", 1, expires_in_days=None)

    assert list(allocator.expiring(7)) == [soon]


# ------------------------ summary ------------------------
def test_summary(allocator, make_lot):
    make_lot("O-", 10)
    make_lot("A+", 3, expires_in_days=3)
    make_lot("B+", 6, expires_in_days=5)
    make_lot("AB-", 2, status=RESERVED)
    make_lot("O+", 7, expires_in_days=-1)

    summary = allocator.summary()

    assert summary["available_blood"]["O-"] == 10
    assert summary["total_available_units"] == 19
    assert summary["expiring_soon"] == 2
    assert summary["critical_levels"] == {
        "A+": 3, "A-": 0, "B-": 0, "AB+": 0, "AB-": 0, "O+": 0,
    }


def test_critical_levels_match_threshold(allocator, make_lot):
    for i, bg in enumerate(BLOOD_GROUPS):
        make_lot(bg, i + 1)

    available = allocator.available_stock()
    critical = allocator.summary()["critical_levels"]
    assert critical == {bg: n for bg, n in available.items() if n < CRITICAL_STOCK_THRESHOLD}
