from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models
from django.utils import timezone

from algorithms.blood_types import BLOOD_TYPE_CHOICES


class CustomUserManager(UserManager):
    """
    Donors register without an email, so a blank email must be stored as
    NULL to keep the unique constraint on email usable.
    """

    def _create_account(self, username, email, password, **extra_fields):
        email = self.normalize_email(email) or None
        username = self.model.normalize_username(username)
        user = self.model(username=username, email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_account(username, email, password, **extra_fields)

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('user_type', 'admin')
        return self._create_account(username, email, password, **extra_fields)


class CustomUser(AbstractUser):
    USER_TYPE_CHOICES = (
        ('donor', 'Donor'),
        ('admin', 'Admin'),
    )

    GENDER_CHOICES = (
        ('MALE', 'Male'),
        ('FEMALE', 'Female'),
    )

    user_type = models.CharField(
        max_length=15,
        choices=USER_TYPE_CHOICES,
        default='donor'
    )
    email = models.EmailField(unique=True, null=True, blank=True)

    full_name = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=64, unique=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    age = models.PositiveIntegerField(null=True, blank=True)
    location = models.CharField(max_length=200, blank=True)
    blood_type = models.CharField(max_length=12, choices=BLOOD_TYPE_CHOICES, blank=True)

    # Donation tracking
    is_eligible = models.BooleanField(default=True)
    eligibility_locked = models.BooleanField(
        default=False,
        help_text="Set when an admin suspends eligibility; the cool-down sweep leaves these donors alone"
    )
    last_donation = models.DateTimeField(null=True, blank=True)
    total_donations = models.PositiveIntegerField(default=0)

    deactivated_at = models.DateTimeField(null=True, blank=True)

    failed_attempts = models.PositiveIntegerField(default=0)
    is_locked = models.BooleanField(default=False)

    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    REQUIRED_FIELDS = ['email', 'phone']

    def __str__(self):
        return f"{self.full_name or self.username} ({self.user_type})"

    @property
    def is_admin_account(self):
        return self.user_type == 'admin' or self.is_superuser

    def deactivate(self):
        """
        Soft delete: the row stays for donation history, but the phone and
        email are rewritten so they can be registered again.
        """
        now = timezone.now()
        stamp = int(now.timestamp())
        self.is_active = False
        self.is_eligible = False
        self.deactivated_at = now
        self.phone = f"deactivated_{self.phone}_{stamp}"
        self.username = f"deactivated_{self.username}_{stamp}"
        if self.email:
            self.email = f"deactivated_{stamp}_{self.email}"
        self.save(update_fields=['is_active', 'is_eligible', 'deactivated_at', 'phone', 'username', 'email'])

    class Meta:
        ordering = ['-date_joined']
        indexes = [
            models.Index(fields=['blood_type', 'is_active', 'is_eligible'], name='user_blood_active_idx'),
        ]


class AdminProfile(models.Model):
    ROLE_CHOICES = (
        ('ADMIN', 'Admin'),
        ('SENDER', 'Sender'),
    )

    user = models.OneToOneField(
        CustomUser,
        on_delete=models.CASCADE,
        related_name='admin_profile'
    )
    organization = models.CharField(max_length=200)
    position = models.CharField(max_length=100)
    department = models.CharField(max_length=100, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='ADMIN')
    is_request_approved = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user.full_name} - {self.organization} ({self.role})"

    class Meta:
        verbose_name = 'Admin Profile'
        verbose_name_plural = 'Admin Profiles'
