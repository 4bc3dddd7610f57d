from django.conf import settings
from django.db import models


class AdminNotification(models.Model):
    """A broadcast written by an admin; delivered as UserNotification rows."""
    TARGET_CHOICES = [
        ('ALL', 'All Users'),
        ('BLOOD_TYPE', 'Blood Type'),
        ('LOCATION', 'Location'),
        ('USER', 'Single User'),
    ]

    PRIORITY_CHOICES = [
        ('LOW', 'Low'),
        ('NORMAL', 'Normal'),
        ('HIGH', 'High'),
    ]

    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_broadcasts'
    )
    title = models.CharField(max_length=200)
    message = models.TextField()
    target_type = models.CharField(max_length=20, choices=TARGET_CHOICES)
    target_value = models.CharField(max_length=200, blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='NORMAL')
    status = models.CharField(max_length=10, default='SENT')
    recipients_count = models.PositiveIntegerField(default=0)
    sent_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.title} → {self.target_type}:{self.target_value or '*'}"

    class Meta:
        ordering = ['-created_at']


class UserNotification(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    broadcast = models.ForeignKey(
        AdminNotification,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='deliveries'
    )
    title = models.CharField(max_length=200)
    message = models.TextField()
    priority = models.CharField(max_length=10, default='NORMAL')
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.title} → {self.user_id}"

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notification_user_read_idx'),
        ]
