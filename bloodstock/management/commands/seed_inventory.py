# bloodstock/management/commands/seed_inventory.py
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from bloodstock.allocator import InventoryAllocator
from bloodstock.compat import BLOOD_GROUPS
from bloodstock.models import InventoryLot


class Command(BaseCommand):
    help = "Seed initial inventory: top up every blood group to N AVAILABLE units (default 100)."

    def add_arguments(self, parser):
        parser.add_argument("--per-type", type=int, default=100,
                            help="Target available units per blood group (default: 100)")
        parser.add_argument("--expiry-days", type=int, default=42,
                            help="Expiry offset in days for seeded lots (default: 42)")
        parser.add_argument("--reset", action="store_true",
                            help="Delete all InventoryLot records before seeding")

    def handle(self, *args, **opts):
        per_type = opts["per_type"]
        expiry_days = opts["expiry_days"]

        if opts["reset"]:
            self.stdout.write(self.style.WARNING("Deleting ALL InventoryLot records..."))
            InventoryLot.objects.all().delete()

        exp = timezone.now() + timedelta(days=expiry_days)
        stock = InventoryAllocator().available_stock()

        created_total = 0
        for bg in BLOOD_GROUPS:
            current = stock[bg]
            to_add = max(0, per_type - current)
            if to_add == 0:
                self.stdout.write(f"{bg}: already has {current}, skipping.")
                continue

            InventoryLot.objects.create(
                blood_group=bg,
                units=to_add,
                status=InventoryLot.Status.AVAILABLE,
                expiry_at=exp,
            )
            created_total += to_add
            self.stdout.write(self.style.SUCCESS(f"{bg}: added {to_add} units (now target={per_type})."))

        self.stdout.write(self.style.SUCCESS(f"Done. Added {created_total} unit(s) total."))
