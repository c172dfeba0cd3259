# bloodstock/management/commands/expire_inventory.py
from django.core.management.base import BaseCommand

from bloodstock.allocator import InventoryAllocator


class Command(BaseCommand):
    help = "Mark AVAILABLE lots whose expiry has passed as EXPIRED."

    def handle(self, *args, **opts):
        count = InventoryAllocator().expire_lots()
        if count:
            self.stdout.write(self.style.WARNING(f"Expired {count} lot(s)."))
        else:
            self.stdout.write("Nothing to expire.")
