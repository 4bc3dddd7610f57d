# hospitals/models.py
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from algorithms.blood_types import BLOOD_TYPE_CHOICES


def default_max_donors():
    return getattr(settings, 'DEFAULT_MAX_DONORS', 5)


class Hospital(models.Model):
    hospital_name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20)
    location = models.CharField(max_length=200)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.hospital_name

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Hospital'
        verbose_name_plural = 'Hospitals'


class BloodRequest(models.Model):
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (APPROVED, 'Approved'),
        (REJECTED, 'Rejected'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    ]

    TERMINAL_STATUSES = (REJECTED, COMPLETED, CANCELLED)

    URGENCY_CHOICES = [
        ('LOW', 'Low'),
        ('MEDIUM', 'Medium'),
        ('HIGH', 'High'),
        ('CRITICAL', 'Critical - Life Threatening'),
    ]

    GENDER_CHOICES = [
        ('MALE', 'Male'),
        ('FEMALE', 'Female'),
    ]

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='blood_requests'
    )

    # Patient details
    full_name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    age = models.PositiveIntegerField()
    location = models.CharField(max_length=200)
    hospital = models.CharField(max_length=200, blank=True)

    blood_type = models.CharField(max_length=12, choices=BLOOD_TYPE_CHOICES)
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='MEDIUM')
    description = models.TextField(blank=True)
    max_donors = models.PositiveIntegerField(default=default_max_donors, validators=[MinValueValidator(1)])

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING, db_index=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_requests'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    reject_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.full_name} - {self.get_blood_type_display()} ({self.status})"

    @property
    def is_open_for_donation(self):
        return self.status == self.APPROVED

    @property
    def hours_waiting(self):
        """How many hours this request has existed"""
        delta = timezone.now() - self.created_at
        return delta.total_seconds() / 3600

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Blood Request'
        verbose_name_plural = 'Blood Requests'
        indexes = [
            models.Index(fields=['status', '-created_at'], name='request_status_created_idx'),
            models.Index(fields=['requester', '-created_at'], name='request_requester_idx'),
        ]
