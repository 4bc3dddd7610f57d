from rest_framework import serializers

from badbaado.serializers import StrictSerializer
from .models import AdminNotification, UserNotification


class AdminNotificationSerializer(serializers.ModelSerializer):
    admin_name = serializers.CharField(source='admin.full_name', read_only=True)

    class Meta:
        model = AdminNotification
        fields = [
            'id', 'admin', 'admin_name', 'title', 'message', 'target_type', 'target_value',
            'priority', 'status', 'recipients_count', 'sent_at', 'created_at',
        ]
        read_only_fields = fields


class UserNotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserNotification
        fields = ['id', 'broadcast', 'title', 'message', 'priority', 'is_read', 'read_at', 'created_at']
        read_only_fields = fields


class BroadcastSerializer(StrictSerializer):
    title = serializers.CharField(max_length=200)
    message = serializers.CharField()
    target_type = serializers.ChoiceField(choices=AdminNotification.TARGET_CHOICES)
    target_value = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    priority = serializers.ChoiceField(choices=AdminNotification.PRIORITY_CHOICES, required=False, default='NORMAL')

    def validate(self, attrs):
        if attrs['target_type'] != 'ALL' and not attrs['target_value'].strip():
            raise serializers.ValidationError({'target_value': ['Required for this target type.']})
        if attrs['target_type'] == 'USER' and not attrs['target_value'].strip().isdigit():
            raise serializers.ValidationError({'target_value': ['Must be a user id.']})
        return attrs
