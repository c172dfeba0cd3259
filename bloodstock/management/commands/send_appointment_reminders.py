# bloodstock/management/commands/send_appointment_reminders.py
import logging

from django.core.management.base import BaseCommand

from bloodstock.services import appointments_needing_reminders, mark_reminder_sent

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Remind donors of SCHEDULED appointments coming up in the next N hours (default 24)."

    def add_arguments(self, parser):
        parser.add_argument("--hours", type=int, default=24,
                            help="Reminder window in hours (default: 24)")

    def handle(self, *args, **opts):
        due = list(appointments_needing_reminders(opts["hours"]))
        if not due:
            self.stdout.write("No reminders due.")
            return

        for appointment in due:
            contact = appointment.donor.email or appointment.donor.phone or "no contact"
            logger.info("Reminder for appointment #%s sent to %s", appointment.pk, contact)
            mark_reminder_sent(appointment.pk)
            self.stdout.write(
                f"{appointment.confirmation_code}: {appointment.donor.full_name} "
                f"at {appointment.appointment_at:%Y-%m-%d %H:%M} ({contact})"
            )
        self.stdout.write(self.style.SUCCESS(f"Sent {len(due)} reminder(s)."))
