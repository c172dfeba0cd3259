# bloodstock/allocator.py
import logging
from contextlib import contextmanager
from datetime import timedelta

from django.db import DatabaseError, transaction
from django.db.models import F, Q, Sum
from django.utils import timezone

from .compat import BLOOD_GROUPS, RECIPIENTS_BY_DONOR
from .exceptions import InventoryStoreError
from .models import InventoryLot

logger = logging.getLogger(__name__)

# Groups with fewer available units than this are reported as critical
CRITICAL_STOCK_THRESHOLD = 5
EXPIRING_SOON_DAYS = 7


class InventoryAllocator:
    """
    Stock queries, allocation and transfers over InventoryLot rows.

    Every mutating operation runs in a single database transaction with the
    touched rows locked, so two callers can never reserve the same units.
    Domain failures (unknown group, not enough stock, missing lot) come back
    as False / {} / None; database failures raise InventoryStoreError.
    """

    def __init__(self, compatibility=RECIPIENTS_BY_DONOR, clock=timezone.now):
        self.compatibility = compatibility
        self.clock = clock

    # ------------------------ plumbing ------------------------
    @contextmanager
    def _store(self, operation, atomic=True):
        try:
            if atomic:
                with transaction.atomic():
                    yield
            else:
                yield
        except DatabaseError as exc:
            logger.exception("Store failure during %s", operation)
            raise InventoryStoreError(operation) from exc

    def _available_qs(self, now=None):
        now = now or self.clock()
        return (
            InventoryLot.objects.filter(status=InventoryLot.Status.AVAILABLE)
            .filter(Q(expiry_at__isnull=True) | Q(expiry_at__gt=now))
        )

    # ------------------------ compatibility ------------------------
    def is_compatible(self, recipient: str, donor: str) -> bool:
        return recipient in self.compatibility.get(donor, ())

    # ------------------------ stock ------------------------
    def available_stock(self) -> dict[str, int]:
        """Available units per blood group; every group is present."""
        stock = {bg: 0 for bg in BLOOD_GROUPS}
        with self._store("available_stock", atomic=False):
            rows = self._available_qs().values("blood_group").annotate(total=Sum("units"))
            for row in rows:
                stock[row["blood_group"]] = row["total"] or 0
        return stock

    def find_compatible_blood(self, recipient: str, units_needed: int = 1) -> dict[str, int]:
        # units_needed is informational; every compatible group with stock is returned
        stock = self.available_stock()
        return {
            bg: units
            for bg, units in stock.items()
            if units > 0 and self.is_compatible(recipient, bg)
        }

    def expiring(self, days: int):
        now = self.clock()
        return (
            self._available_qs(now)
            .filter(expiry_at__isnull=False, expiry_at__lte=now + timedelta(days=days))
            .order_by("expiry_at", "id")
        )

    # ------------------------ allocation ------------------------
    def allocate(self, blood_group: str, units: int) -> bool:
        """
        Reserve `units` of `blood_group`, soonest-expiring lots first. A lot
        larger than the remaining need is split and only the split-off part
        is reserved. Nothing changes unless the whole amount can be covered.
        """
        if blood_group not in BLOOD_GROUPS or units < 0:
            return False
        if units == 0:
            return True

        with self._store("allocate"):
            lots = list(
                self._available_qs()
                .filter(blood_group=blood_group, units__gt=0)
                .select_for_update()
                .order_by(F("expiry_at").asc(nulls_last=True), "created_at", "id")
            )
            total = sum(lot.units for lot in lots)
            if total < units:
                logger.info("Allocation refused: %s x%d requested, %d available", blood_group, units, total)
                return False

            remaining = units
            for lot in lots:
                if remaining == 0:
                    break
                if lot.units <= remaining:
                    lot.mark_reserved()
                    remaining -= lot.units
                else:
                    lot.split_off(remaining)
                    remaining = 0

        logger.info("Allocated %s x%d", blood_group, units)
        return remaining == 0

    # ------------------------ transfer ------------------------
    def transfer(self, source_id, target_id, units: int) -> bool:
        """Move units between two existing lots of the same blood group."""
        if units <= 0 or source_id == target_id:
            return False

        with self._store("transfer"):
            locked = {
                lot.pk: lot
                for lot in InventoryLot.objects.select_for_update()
                .filter(pk__in=[source_id, target_id])
                .order_by("pk")
            }
            source = locked.get(source_id)
            target = locked.get(target_id)
            if source is None or target is None:
                return False
            if source.blood_group != target.blood_group:
                return False
            if source.units < units:
                return False

            source.adjust_units(-units)
            target.adjust_units(units)

        logger.info("Transferred %d unit(s) from lot #%s to lot #%s", units, source_id, target_id)
        return True

    # ------------------------ status ------------------------
    def update_status(self, lot_id, status: str):
        if status not in InventoryLot.Status.values:
            return None
        with self._store("update_status"):
            lot = InventoryLot.objects.select_for_update().filter(pk=lot_id).first()
            if lot is None:
                return None
            lot.status = status
            lot.save(update_fields=["status", "updated_at"])
        return lot

    def expire_lots(self, now=None) -> int:
        """Flip AVAILABLE lots whose expiry has passed to EXPIRED."""
        now = now or self.clock()
        with self._store("expire_lots"):
            count = (
                InventoryLot.objects.filter(
                    status=InventoryLot.Status.AVAILABLE,
                    expiry_at__isnull=False,
                    expiry_at__lte=now,
                )
                .update(status=InventoryLot.Status.EXPIRED, updated_at=now)
            )
        if count:
            logger.info("Expired %d lot(s)", count)
        return count

    # ------------------------ reporting ------------------------
    def summary(self) -> dict:
        available = self.available_stock()
        with self._store("summary", atomic=False):
            expiring_soon = self.expiring(EXPIRING_SOON_DAYS).count()
        return {
            "available_blood": available,
            "total_available_units": sum(available.values()),
            "expiring_soon": expiring_soon,
            "critical_levels": {
                bg: units for bg, units in available.items() if units < CRITICAL_STOCK_THRESHOLD
            },
        }
