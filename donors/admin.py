from django.contrib import admin, messages
from rest_framework.exceptions import APIException

from .models import Donation
from .utils import confirm_donation


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'blood_request', 'status', 'accepted_at', 'completed_at', 'created_at']
    list_filter   = ['status']
    search_fields = ['donor__full_name', 'donor__phone', 'blood_request__full_name']
    ordering      = ['-created_at']
    # Status moves go through confirm_selected so the donor is credited with them
    readonly_fields = ['status', 'accepted_at', 'completed_at', 'created_at', 'updated_at']
    actions = ['confirm_selected']

    @admin.action(description='Confirm selected donations as completed')
    def confirm_selected(self, request, queryset):
        done = 0
        for donation in queryset:
            try:
                confirm_donation(donation.id, request.user)
                done += 1
            except APIException as exc:
                self.message_user(request, f"Donation #{donation.id}: {exc.detail}", level=messages.WARNING)
        if done:
            self.message_user(request, f"{done} donation(s) confirmed.")
