import django.core.validators
import django.db.models.deletion
import hospitals.models
from django.conf import settings
from django.db import migrations, models


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
                ("hospital_name", models.CharField(max_length=200)),
                ("phone", models.CharField(max_length=20)),
                ("location", models.CharField(max_length=200)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Hospital",
                "verbose_name_plural": "Hospitals",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="BloodRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("full_name", models.CharField(max_length=200)),
                ("phone", models.CharField(max_length=20)),
                ("gender", models.CharField(choices=[("MALE", "Male"), ("FEMALE", "Female")], max_length=10)),
                ("age", models.PositiveIntegerField()),
                ("location", models.CharField(max_length=200)),
                ("hospital", models.CharField(blank=True, max_length=200)),
                (
                    "blood_type",
                    models.CharField(
                        choices=[
                            ("A_POSITIVE", "A+"), ("A_NEGATIVE", "A-"),
                            ("B_POSITIVE", "B+"), ("B_NEGATIVE", "B-"),
                            ("AB_POSITIVE", "AB+"), ("AB_NEGATIVE", "AB-"),
                            ("O_POSITIVE", "O+"), ("O_NEGATIVE", "O-"),
                        ],
                        max_length=12,
                    ),
                ),
                (
                    "urgency",
                    models.CharField(
                        choices=[
                            ("LOW", "Low"),
                            ("MEDIUM", "Medium"),
                            ("HIGH", "High"),
                            ("CRITICAL", "Critical - Life Threatening"),
                        ],
                        default="MEDIUM",
                        max_length=10,
                    ),
                ),
                ("description", models.TextField(blank=True)),
                (
                    "max_donors",
                    models.PositiveIntegerField(
                        default=hospitals.models.default_max_donors,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("APPROVED", "Approved"),
                            ("REJECTED", "Rejected"),
                            ("COMPLETED", "Completed"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="PENDING",
                        max_length=10,
                    ),
                ),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("reject_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="approved_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "requester",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="blood_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Blood Request",
                "verbose_name_plural": "Blood Requests",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "-created_at"], name="request_status_created_idx"),
                    models.Index(fields=["requester", "-created_at"], name="request_requester_idx"),
                ],
            },
        ),
    ]
