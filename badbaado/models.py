from django.conf import settings
from django.db import models


class SystemSetting(models.Model):
    """Runtime key/value settings editable from the admin API."""
    CATEGORY_CHOICES = [
        ('SYSTEM_CONFIGURATION', 'System Configuration'),
        ('NOTIFICATIONS', 'Notifications'),
        ('DONATIONS', 'Donations'),
    ]

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES, default='SYSTEM_CONFIGURATION')
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_settings'
    )
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.key} = {self.value}"

    class Meta:
        ordering = ['category', 'key']
