from rest_framework import serializers

from .models import SystemSetting


class StrictSerializer(serializers.Serializer):
    """
    Input serializer that refuses keys it does not declare.

    DRF silently drops unknown keys; request bodies for the workflow
    endpoints must be exact so typos ("rejectReson") fail loudly.
    """

    def to_internal_value(self, data):
        if hasattr(data, 'keys'):
            unknown = set(data.keys()) - set(self.fields.keys())
            if unknown:
                raise serializers.ValidationError(
                    {key: ['Unknown field.'] for key in sorted(unknown)}
                )
        return super().to_internal_value(data)


class SystemSettingSerializer(serializers.ModelSerializer):
    updated_by_name = serializers.SerializerMethodField()

    class Meta:
        model = SystemSetting
        fields = ['id', 'key', 'value', 'description', 'category', 'updated_by', 'updated_by_name', 'updated_at']
        read_only_fields = ['key', 'category', 'updated_by', 'updated_at']

    def get_updated_by_name(self, obj):
        return obj.updated_by.full_name if obj.updated_by else None


class SystemSettingInputSerializer(StrictSerializer):
    value = serializers.CharField()
    description = serializers.CharField(required=False, allow_blank=True)
