from django.contrib import admin

from .models import AdminProfile, CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'phone', 'email', 'user_type', 'blood_type', 'location', 'is_active', 'is_eligible')
    search_fields = ('full_name', 'phone', 'email', 'location')
    list_filter = ('user_type', 'blood_type', 'is_active', 'is_eligible', 'is_locked')
    readonly_fields = ('last_donation', 'total_donations', 'deactivated_at', 'date_joined', 'updated_at')
    exclude = ('password',)


@admin.register(AdminProfile)
class AdminProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'organization', 'position', 'role', 'is_request_approved')
    list_filter = ('role', 'is_request_approved')
