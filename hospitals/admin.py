# hospitals/admin.py
from django.contrib import admin, messages
from django.utils.html import format_html
from rest_framework.exceptions import APIException

from donors.models import Donation
from . import lifecycle
from .models import BloodRequest, Hospital


class DonationInline(admin.TabularInline):
    model = Donation
    extra = 0
    fields = ['donor', 'status', 'notes', 'accepted_at', 'completed_at']
    readonly_fields = fields
    can_delete = False


@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'full_name',
        'blood_type',
        'location',
        'urgency',
        'status',
        'donor_count',
        'created_at',
    ]
    list_filter = ['status', 'urgency', 'blood_type', 'created_at']
    search_fields = ['full_name', 'phone', 'location', 'hospital']
    readonly_fields = [
        'status', 'approved_by', 'approved_at', 'rejected_at', 'completed_at',
        'cancelled_at', 'reject_reason', 'created_at', 'updated_at',
    ]
    inlines = [DonationInline]

    fieldsets = (
        ('Patient', {
            'fields': ('requester', 'full_name', 'phone', 'gender', 'age', 'location', 'hospital')
        }),
        ('Request', {
            'fields': ('blood_type', 'urgency', 'description', 'max_donors')
        }),
        ('Lifecycle', {
            'fields': ('status', 'approved_by', 'approved_at', 'rejected_at',
                       'completed_at', 'cancelled_at', 'reject_reason'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['approve_selected', 'complete_selected']

    def donor_count(self, obj):
        total = obj.donations.count()
        completed = obj.donations.filter(status=Donation.COMPLETED).count()
        return format_html(
            '<span style="color: blue;">{}/{}</span> | <span style="color: green;">Completed: {}</span>',
            total, obj.max_donors, completed
        )
    donor_count.short_description = 'Donors'

    def _run_transition(self, request, queryset, transition, verb):
        done = 0
        for blood_request in queryset:
            try:
                transition(blood_request.id, request.user)
                done += 1
            except APIException as exc:
                self.message_user(request, f"Request #{blood_request.id}: {exc.detail}", level=messages.WARNING)
        if done:
            self.message_user(request, f"{done} request(s) {verb}.")

    @admin.action(description='Approve selected requests and notify matched donors')
    def approve_selected(self, request, queryset):
        self._run_transition(request, queryset, lifecycle.approve_request, 'approved')

    @admin.action(description='Mark selected requests as completed')
    def complete_selected(self, request, queryset):
        self._run_transition(request, queryset, lifecycle.complete_request, 'completed')


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ['hospital_name', 'phone', 'location', 'is_active']
    list_filter = ['is_active', 'created_at']
    search_fields = ['hospital_name', 'phone', 'location']
