# hospitals/serializers.py
from rest_framework import serializers

from accounts.serializers import BloodTypeField
from badbaado.serializers import StrictSerializer
from .models import BloodRequest, Hospital


class HospitalSerializer(serializers.ModelSerializer):
    class Meta:
        model = Hospital
        fields = ['id', 'hospital_name', 'phone', 'location', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class BloodRequestSerializer(serializers.ModelSerializer):
    blood_type_display = serializers.CharField(source='get_blood_type_display', read_only=True)
    requester_name = serializers.SerializerMethodField()
    approved_by_name = serializers.SerializerMethodField()
    donors_count = serializers.SerializerMethodField()

    class Meta:
        model = BloodRequest
        fields = [
            'id',
            'requester',
            'requester_name',
            'full_name',
            'phone',
            'gender',
            'age',
            'location',
            'hospital',
            'blood_type',
            'blood_type_display',
            'urgency',
            'description',
            'max_donors',
            'donors_count',
            'status',
            'approved_by',
            'approved_by_name',
            'approved_at',
            'rejected_at',
            'completed_at',
            'cancelled_at',
            'reject_reason',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_requester_name(self, obj):
        return obj.requester.full_name if obj.requester_id else None

    def get_approved_by_name(self, obj):
        return obj.approved_by.full_name if obj.approved_by_id else None

    def get_donors_count(self, obj):
        # Annotated by list views; falls back to a count query
        count = getattr(obj, 'donations_total', None)
        if count is None:
            count = obj.donations.count()
        return count


# -----------------------------
# INPUT SERIALIZERS
# -----------------------------
class BloodRequestCreateSerializer(StrictSerializer):
    full_name = serializers.CharField(max_length=200)
    phone = serializers.CharField(max_length=20)
    gender = serializers.ChoiceField(choices=BloodRequest.GENDER_CHOICES)
    age = serializers.IntegerField(min_value=0, max_value=120)
    location = serializers.CharField(max_length=200)
    hospital = serializers.CharField(max_length=200, required=False, allow_blank=True)
    blood_type = BloodTypeField()
    urgency = serializers.ChoiceField(choices=BloodRequest.URGENCY_CHOICES, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    max_donors = serializers.IntegerField(min_value=1, required=False)


class RejectRequestSerializer(StrictSerializer):
    # Blank reasons are refused by the lifecycle, after the request lookup
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class DonorSearchSerializer(StrictSerializer):
    blood_type = BloodTypeField()
    location = serializers.CharField(max_length=200)
