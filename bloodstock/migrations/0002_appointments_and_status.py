import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


def screen_pending_donations(apps, schema_editor):
    Donation = apps.get_model("bloodstock", "Donation")
    Donation.objects.filter(status="PENDING", health_status="NORMAL").update(status="APPROVED")
    Donation.objects.filter(status="PENDING").update(status="REJECTED")


class Migration(migrations.Migration):

    dependencies = [
        ("bloodstock", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(screen_pending_donations, migrations.RunPython.noop),
        migrations.AlterField(
            model_name="donation",
            name="status",
            field=models.CharField(
                choices=[("APPROVED", "Approved"), ("REJECTED", "Rejected")],
                max_length=10, verbose_name="Status"),
        ),
        migrations.AddField(
            model_name="emergencynotification",
            name="updated_at",
            field=models.DateTimeField(
                auto_now=True, default=django.utils.timezone.now, verbose_name="Updated at"),
            preserve_default=False,
        ),
        migrations.CreateModel(
            name="DonationAppointment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("appointment_at", models.DateTimeField(db_index=True, verbose_name="Appointment time")),
                ("location", models.CharField(blank=True, max_length=255, verbose_name="Location")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("confirmation_code", models.CharField(max_length=8, unique=True, verbose_name="Confirmation code")),
                ("status", models.CharField(
                    choices=[("SCHEDULED", "Scheduled"), ("COMPLETED", "Completed"), ("CANCELLED", "Cancelled"),
                             ("MISSED", "Missed")],
                    db_index=True, default="SCHEDULED", max_length=10, verbose_name="Status")),
                ("reminder_sent", models.BooleanField(default=False, verbose_name="Reminder sent")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("donor", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="appointments", to="bloodstock.donor")),
            ],
            options={"ordering": ["appointment_at", "id"]},
        ),
    ]
