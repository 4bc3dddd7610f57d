# donors/serializers.py
from rest_framework import serializers

from badbaado.serializers import StrictSerializer
from .models import Donation


class DonationSerializer(serializers.ModelSerializer):
    donor_name = serializers.CharField(source='donor.full_name', read_only=True)
    donor_phone = serializers.CharField(source='donor.phone', read_only=True)
    donor_blood_type = serializers.CharField(source='donor.get_blood_type_display', read_only=True)
    patient_name = serializers.CharField(source='blood_request.full_name', read_only=True)
    request_status = serializers.CharField(source='blood_request.status', read_only=True)
    hospital = serializers.CharField(source='blood_request.hospital', read_only=True)
    location = serializers.CharField(source='blood_request.location', read_only=True)

    class Meta:
        model = Donation
        fields = [
            'id',
            'donor',
            'donor_name',
            'donor_phone',
            'donor_blood_type',
            'blood_request',
            'patient_name',
            'request_status',
            'hospital',
            'location',
            'status',
            'notes',
            'accepted_at',
            'completed_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


# -----------------------------
# INPUT SERIALIZERS
# -----------------------------
class DonationCreateSerializer(StrictSerializer):
    blood_request_id = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class DonationStatusSerializer(StrictSerializer):
    # Moves the current status does not allow are refused by advance_status
    status = serializers.ChoiceField(choices=Donation.STATUS_CHOICES)
