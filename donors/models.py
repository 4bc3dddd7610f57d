from django.conf import settings
from django.db import models


class Donation(models.Model):
    """A donor's response to one blood request."""
    PENDING = 'PENDING'
    ACCEPTED = 'ACCEPTED'
    COMPLETED = 'COMPLETED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (ACCEPTED, 'Accepted'),
        (COMPLETED, 'Donation Completed'),
    ]

    OPEN_STATUSES = (PENDING, ACCEPTED)

    # Allowed moves for advance_status
    TRANSITIONS = {
        PENDING: (ACCEPTED, COMPLETED),
        ACCEPTED: (COMPLETED,),
        COMPLETED: (),
    }

    DEFAULT_NOTES = 'Available to donate blood'

    donor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='donations'
    )
    blood_request = models.ForeignKey(
        'hospitals.BloodRequest',
        on_delete=models.CASCADE,
        related_name='donations'
    )

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    notes = models.TextField(blank=True, default=DEFAULT_NOTES)
    accepted_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.donor.full_name} → request #{self.blood_request_id} ({self.status})"

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['donor', 'blood_request'], name='unique_donation_per_request'),
        ]
        indexes = [
            models.Index(fields=['blood_request', 'status'], name='donation_request_status_idx'),
            models.Index(fields=['donor', '-created_at'], name='donation_donor_created_idx'),
        ]


def credit_donors(donor_ids, when):
    """
    Apply a completed donation to each donor: start the cool-down and bump
    the lifetime counter. Callers run this inside the same transaction that
    moves the donation(s) to COMPLETED.
    """
    from django.contrib.auth import get_user_model

    if not donor_ids:
        return 0
    return get_user_model().objects.filter(id__in=donor_ids).update(
        is_eligible=False,
        last_donation=when,
        total_donations=models.F('total_donations') + 1,
    )
