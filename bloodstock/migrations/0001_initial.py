import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

BLOOD_GROUP_CHOICES = [
    ("A+", "A+"), ("A-", "A-"), ("B+", "B+"), ("B-", "B-"),
    ("AB+", "AB+"), ("AB-", "AB-"), ("O+", "O+"), ("O-", "O-"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Hospital",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, verbose_name="Name")),
                ("address", models.CharField(blank=True, max_length=255, verbose_name="Address")),
                ("contact_person", models.CharField(blank=True, max_length=120, verbose_name="Contact person")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="Email")),
                ("phone", models.CharField(blank=True, max_length=30, verbose_name="Phone")),
                ("registration_number", models.CharField(max_length=50, unique=True, verbose_name="Registration number")),
                ("status", models.CharField(
                    choices=[("ACTIVE", "Active"), ("INACTIVE", "Inactive"), ("PENDING", "Pending")],
                    default="ACTIVE", max_length=10, verbose_name="Status")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Donor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("full_name", models.CharField(max_length=120, verbose_name="Full name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="Email")),
                ("phone", models.CharField(blank=True, max_length=30, verbose_name="Phone")),
                ("blood_group", models.CharField(choices=BLOOD_GROUP_CHOICES, max_length=3, verbose_name="Blood group")),
                ("date_of_birth", models.DateField(blank=True, null=True, verbose_name="Date of birth")),
                ("last_donation_at", models.DateTimeField(blank=True, null=True, verbose_name="Last donation")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
            ],
            options={"ordering": ["full_name"]},
        ),
        migrations.CreateModel(
            name="Donation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("blood_group", models.CharField(choices=BLOOD_GROUP_CHOICES, max_length=3, verbose_name="Blood group")),
                ("quantity_ml", models.PositiveIntegerField(verbose_name="Quantity (ml)")),
                ("donated_at", models.DateTimeField(auto_now_add=True, verbose_name="Donation time")),
                ("health_status", models.CharField(
                    choices=[("NORMAL", "Normal"), ("ABNORMAL", "Abnormal")],
                    default="NORMAL", max_length=10, verbose_name="Health status")),
                ("status", models.CharField(
                    choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")],
                    default="PENDING", max_length=10, verbose_name="Status")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("donor", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="donations", to="bloodstock.donor")),
            ],
            options={"ordering": ["-donated_at"]},
        ),
        migrations.CreateModel(
            name="InventoryLot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("blood_group", models.CharField(
                    choices=BLOOD_GROUP_CHOICES, db_index=True, max_length=3, verbose_name="Blood group")),
                ("units", models.PositiveIntegerField(default=0, verbose_name="Units")),
                ("status", models.CharField(
                    choices=[("AVAILABLE", "Available"), ("RESERVED", "Reserved"), ("USED", "Used"), ("EXPIRED", "Expired")],
                    db_index=True, default="AVAILABLE", max_length=10, verbose_name="Status")),
                ("expiry_at", models.DateTimeField(blank=True, null=True, verbose_name="Expiry at")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("donation", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="inventory_lots", to="bloodstock.donation")),
                ("hospital", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="inventory_lots", to="bloodstock.hospital")),
            ],
            options={"ordering": ["blood_group", "expiry_at", "id"]},
        ),
        migrations.CreateModel(
            name="BloodRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("requester_name", models.CharField(max_length=120, verbose_name="Requester name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="Email")),
                ("phone", models.CharField(blank=True, max_length=30, verbose_name="Phone")),
                ("blood_group", models.CharField(choices=BLOOD_GROUP_CHOICES, max_length=3, verbose_name="Blood group")),
                ("units_needed", models.PositiveIntegerField(default=1, verbose_name="Units needed")),
                ("units_provided", models.PositiveIntegerField(default=0, verbose_name="Units provided")),
                ("priority", models.CharField(
                    choices=[("EMERGENCY", "Emergency"), ("URGENT", "Urgent"), ("NORMAL", "Normal"), ("LOW", "Low")],
                    default="NORMAL", max_length=10, verbose_name="Priority")),
                ("status", models.CharField(
                    choices=[("PENDING", "Pending"), ("PARTIAL", "Partial"), ("FULFILLED", "Fulfilled"),
                             ("CANCELLED", "Cancelled")],
                    db_index=True, default="PENDING", max_length=10, verbose_name="Status")),
                ("reason", models.TextField(blank=True, verbose_name="Reason")),
                ("required_by", models.DateTimeField(blank=True, null=True, verbose_name="Required by")),
                ("plan", models.JSONField(blank=True, default=dict, verbose_name="Allocation plan")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("hospital", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="blood_requests", to="bloodstock.hospital")),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="EmergencyNotification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("blood_group", models.CharField(choices=BLOOD_GROUP_CHOICES, max_length=3, verbose_name="Blood group")),
                ("units_needed", models.PositiveIntegerField(verbose_name="Units needed")),
                ("message", models.TextField(verbose_name="Message")),
                ("status", models.CharField(
                    choices=[("ACTIVE", "Active"), ("RESOLVED", "Resolved")],
                    db_index=True, default="ACTIVE", max_length=10, verbose_name="Status")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("blood_request", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="emergencies", to="bloodstock.bloodrequest")),
                ("hospital", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="emergencies", to="bloodstock.hospital")),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="AuditEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(blank=True, max_length=20, verbose_name="Role at time")),
                ("action", models.CharField(max_length=50, verbose_name="Action")),
                ("details", models.JSONField(blank=True, default=dict, verbose_name="Details")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("user", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-created_at"]},
        ),
    ]
