from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from bloodstock.allocator import InventoryAllocator
from bloodstock.compat import BLOOD_GROUPS
from bloodstock.models import InventoryLot
from bloodstock.services import schedule_appointment

pytestmark = pytest.mark.django_db


def run(*args):
    out = StringIO()
    call_command(*args, stdout=out)
    return out.getvalue()


def test_seed_tops_up_every_group(make_lot):
    make_lot("O-", 4)

    output = run("seed_inventory", "--per-type", "10")

    assert InventoryAllocator().available_stock() == {bg: 10 for bg in BLOOD_GROUPS}
    assert InventoryLot.objects.filter(blood_group="O-").count() == 2
    assert "O-: added 6 units" in output


def test_seed_skips_full_groups():
    run("seed_inventory", "--per-type", "3")
    output = run("seed_inventory", "--per-type", "3")
    assert "already has 3, skipping" in output
    assert InventoryLot.objects.count() == len(BLOOD_GROUPS)


def test_seed_reset(make_lot):
    make_lot("AB+", 50, status=InventoryLot.Status.RESERVED)
    run("seed_inventory", "--per-type", "1", "--reset")
    assert not InventoryLot.objects.filter(status=InventoryLot.Status.RESERVED).exists()
    assert InventoryLot.objects.count() == len(BLOOD_GROUPS)


def test_expire_inventory(make_lot):
    make_lot("A+", 2, expires_in_days=-1)
    make_lot("A+", 2, expires_in_days=3)

    assert "Expired 1 lot(s)." in run("expire_inventory")
    assert "Nothing to expire." in run("expire_inventory")


def test_send_appointment_reminders(donor):
    now = timezone.now()
    due = schedule_appointment(donor, now + timedelta(hours=3))
    schedule_appointment(donor, now + timedelta(days=4))

    output = run("send_appointment_reminders", "--hours", "24")

    assert f"{due.confirmation_code}: Dana Levi" in output
    assert "Sent 1 reminder(s)." in output
    due.refresh_from_db()
    assert due.reminder_sent is True
    assert "No reminders due." in run("send_appointment_reminders")
