from django.contrib import admin

from .models import AdminNotification, UserNotification


@admin.register(AdminNotification)
class AdminNotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'admin', 'target_type', 'target_value', 'priority', 'recipients_count', 'sent_at']
    list_filter = ['target_type', 'priority']
    search_fields = ['title', 'message']
    readonly_fields = ['recipients_count', 'sent_at', 'created_at']


@admin.register(UserNotification)
class UserNotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'priority', 'is_read', 'created_at']
    list_filter = ['is_read', 'priority']
    search_fields = ['title', 'user__full_name', 'user__phone']
