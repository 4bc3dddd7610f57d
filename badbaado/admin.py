from django.contrib import admin
from .models import SystemSetting


@admin.register(SystemSetting)
class SystemSettingAdmin(admin.ModelAdmin):
    list_display = ('key', 'value', 'category', 'updated_by', 'updated_at')
    list_filter = ('category',)
    search_fields = ('key', 'description')
    readonly_fields = ('updated_at',)
