import accounts.models
import django.contrib.auth.validators
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="CustomUser",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                (
                    "is_superuser",
                    models.BooleanField(
                        default=False,
                        help_text="Designates that this user has all permissions without explicitly assigning them.",
                        verbose_name="superuser status",
                    ),
                ),
                (
                    "username",
                    models.CharField(
                        error_messages={"unique": "A user with that username already exists."},
                        help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.",
                        max_length=150,
                        unique=True,
                        validators=[django.contrib.auth.validators.UnicodeUsernameValidator()],
                        verbose_name="username",
                    ),
                ),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                (
                    "is_staff",
                    models.BooleanField(
                        default=False,
                        help_text="Designates whether the user can log into this admin site.",
                        verbose_name="staff status",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Designates whether this user should be treated as active. "
                        "Unselect this instead of deleting accounts.",
                        verbose_name="active",
                    ),
                ),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                (
                    "user_type",
                    models.CharField(choices=[("donor", "Donor"), ("admin", "Admin")], default="donor", max_length=15),
                ),
                ("email", models.EmailField(blank=True, max_length=254, null=True, unique=True)),
                ("full_name", models.CharField(blank=True, max_length=200)),
                ("phone", models.CharField(max_length=64, unique=True)),
                (
                    "gender",
                    models.CharField(blank=True, choices=[("MALE", "Male"), ("FEMALE", "Female")], max_length=10),
                ),
                ("age", models.PositiveIntegerField(blank=True, null=True)),
                ("location", models.CharField(blank=True, max_length=200)),
                (
                    "blood_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("A_POSITIVE", "A+"), ("A_NEGATIVE", "A-"),
                            ("B_POSITIVE", "B+"), ("B_NEGATIVE", "B-"),
                            ("AB_POSITIVE", "AB+"), ("AB_NEGATIVE", "AB-"),
                            ("O_POSITIVE", "O+"), ("O_NEGATIVE", "O-"),
                        ],
                        max_length=12,
                    ),
                ),
                ("is_eligible", models.BooleanField(default=True)),
                (
                    "eligibility_locked",
                    models.BooleanField(
                        default=False,
                        help_text="Set when an admin suspends eligibility; the cool-down sweep leaves these donors alone",
                    ),
                ),
                ("last_donation", models.DateTimeField(blank=True, null=True)),
                ("total_donations", models.PositiveIntegerField(default=0)),
                ("deactivated_at", models.DateTimeField(blank=True, null=True)),
                ("failed_attempts", models.PositiveIntegerField(default=0)),
                ("is_locked", models.BooleanField(default=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
            ],
            options={
                "ordering": ["-date_joined"],
                "indexes": [
                    models.Index(fields=["blood_type", "is_active", "is_eligible"], name="user_blood_active_idx"),
                ],
            },
            managers=[
                ("objects", accounts.models.CustomUserManager()),
            ],
        ),
        migrations.CreateModel(
            name="AdminProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("organization", models.CharField(max_length=200)),
                ("position", models.CharField(max_length=100)),
                ("department", models.CharField(blank=True, max_length=100)),
                (
                    "role",
                    models.CharField(choices=[("ADMIN", "Admin"), ("SENDER", "Sender")], default="ADMIN", max_length=10),
                ),
                ("is_request_approved", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="admin_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Admin Profile",
                "verbose_name_plural": "Admin Profiles",
            },
        ),
    ]
