# accounts/serializers.py
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from algorithms.blood_types import BLOOD_TYPE_CHOICES, parse_blood_type
from algorithms.eligibility import days_until_eligible
from badbaado.serializers import StrictSerializer
from .models import AdminProfile

User = get_user_model()


class BloodTypeField(serializers.ChoiceField):
    """Accepts 'O_POSITIVE' or 'O+'; always stores 'O_POSITIVE'."""

    def __init__(self, **kwargs):
        super().__init__(choices=BLOOD_TYPE_CHOICES, **kwargs)

    def to_internal_value(self, data):
        parsed = parse_blood_type(data if isinstance(data, str) else None)
        if parsed is None:
            self.fail('invalid_choice', input=data)
        return parsed


class UserSerializer(serializers.ModelSerializer):
    """
    Public view of a user account (never includes the password)
    """
    blood_type_display = serializers.CharField(source='get_blood_type_display', read_only=True)
    can_donate = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'full_name',
            'phone',
            'email',
            'gender',
            'age',
            'location',
            'blood_type',
            'blood_type_display',
            'user_type',
            'is_active',
            'is_eligible',
            'can_donate',
            'total_donations',
            'last_donation',
            'date_joined',
            'updated_at',
        ]
        read_only_fields = fields

    def get_can_donate(self, obj):
        return obj.is_active and obj.is_eligible and days_until_eligible(obj) == 0


class AdminProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = AdminProfile
        fields = ['organization', 'position', 'department', 'role', 'is_request_approved']


class AdminUserSerializer(UserSerializer):
    admin_profile = AdminProfileSerializer(read_only=True)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['admin_profile']
        read_only_fields = fields


# -----------------------------
# INPUT SERIALIZERS
# -----------------------------
class UserRegistrationSerializer(StrictSerializer):
    password = serializers.CharField(write_only=True)
    full_name = serializers.CharField(max_length=200)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    gender = serializers.ChoiceField(choices=User.GENDER_CHOICES)
    age = serializers.IntegerField(min_value=1, max_value=120)
    location = serializers.CharField(max_length=200)
    blood_type = BloodTypeField()

    def validate_password(self, value):
        validate_password(value)
        return value

    def validate_phone(self, value):
        return value.strip()


class AdminRegistrationSerializer(StrictSerializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    full_name = serializers.CharField(max_length=200)
    phone = serializers.CharField(max_length=20)
    organization = serializers.CharField(max_length=200)
    position = serializers.CharField(max_length=100)
    department = serializers.CharField(max_length=100, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=AdminProfile.ROLE_CHOICES)
    is_request_approved = serializers.BooleanField(required=False, default=False)

    def validate_password(self, value):
        validate_password(value)
        return value


class UserLoginSerializer(StrictSerializer):
    phone = serializers.CharField()
    password = serializers.CharField(write_only=True)


class AdminLoginSerializer(StrictSerializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class ProfileUpdateSerializer(StrictSerializer):
    full_name = serializers.CharField(max_length=200, required=False)
    phone = serializers.CharField(max_length=20, required=False)
    age = serializers.IntegerField(min_value=1, max_value=120, required=False)
    location = serializers.CharField(max_length=200, required=False)
    blood_type = BloodTypeField(required=False)


class FindByPhoneSerializer(StrictSerializer):
    phone = serializers.CharField()


class UserStatusSerializer(StrictSerializer):
    is_active = serializers.BooleanField()


class UserEligibilitySerializer(StrictSerializer):
    is_eligible = serializers.BooleanField()
