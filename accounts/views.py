import logging

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from algorithms.eligibility import days_until_eligible, in_cooldown
from badbaado.exceptions import AuthError, ConflictError, NotFoundError
from .decorators import get_tokens_for_user, role_required
from .models import AdminProfile
from .serializers import (
    AdminLoginSerializer,
    AdminRegistrationSerializer,
    AdminUserSerializer,
    BloodTypeField,
    FindByPhoneSerializer,
    ProfileUpdateSerializer,
    UserEligibilitySerializer,
    UserLoginSerializer,
    UserRegistrationSerializer,
    UserSerializer,
    UserStatusSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


# -----------------------------
# REGISTER APIs
# -----------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def register_user(request):
    """
    Registers a donor/requester account and returns JWT tokens
    """
    serializer = UserRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if User.objects.filter(phone=data['phone']).exists():
        raise ConflictError("An account with this phone number already exists")
    if data.get('email') and User.objects.filter(email__iexact=data['email']).exists():
        raise ConflictError("Email already registered")

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=data['phone'],
                email=data.get('email'),
                password=data['password'],
                user_type='donor',
                full_name=data['full_name'],
                phone=data['phone'],
                gender=data['gender'],
                age=data['age'],
                location=data['location'],
                blood_type=data['blood_type'],
            )
    except IntegrityError:
        # Lost a race with a concurrent registration
        raise ConflictError("An account with this phone number already exists")

    logger.info(f"User {user.id} registered ({user.get_blood_type_display()}, {user.location})")

    return Response(
        {
            "message": "User registered successfully",
            "user": UserSerializer(user).data,
            "tokens": get_tokens_for_user(user),
        },
        status=status.HTTP_201_CREATED
    )


@api_view(['POST'])
@permission_classes([AllowAny])
def register_admin(request):
    """
    Registers an admin account with its organization profile
    """
    serializer = AdminRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if User.objects.filter(email__iexact=data['email']).exists():
        raise ConflictError("Admin already exists")
    if User.objects.filter(phone=data['phone']).exists():
        raise ConflictError("Phone number already registered")

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=data['email'],
                email=data['email'],
                password=data['password'],
                user_type='admin',
                full_name=data['full_name'],
                phone=data['phone'],
                is_eligible=False,
            )
            AdminProfile.objects.create(
                user=user,
                organization=data['organization'],
                position=data['position'],
                department=data.get('department', ''),
                role=data['role'],
                is_request_approved=data.get('is_request_approved', False),
            )
    except IntegrityError:
        raise ConflictError("Admin already exists")

    logger.info(f"Admin {user.id} registered for {data['organization']}")

    return Response(
        {
            "message": "Admin registered successfully",
            "admin": AdminUserSerializer(user).data,
            "tokens": get_tokens_for_user(user),
        },
        status=status.HTTP_201_CREATED
    )


# -----------------------------
# LOGIN APIs
# -----------------------------
def _login(request, identifier, password, admin=False):
    """
    JWT login with account lock after MAX_FAILED_LOGINS failed attempts
    """
    lookup = Q(email__iexact=identifier) if admin else Q(phone=identifier)
    user = User.objects.filter(lookup).first()

    if not user or not user.is_active:
        raise AuthError("Invalid credentials")
    if admin and not user.is_admin_account:
        raise AuthError("Invalid credentials")
    if user.is_locked:
        raise AuthError("Account locked due to multiple failed attempts")

    # Check password
    user_auth = authenticate(request, username=identifier, password=password)
    if user_auth is None or user_auth.pk != user.pk:
        user.failed_attempts += 1
        if user.failed_attempts >= settings.MAX_FAILED_LOGINS:
            user.is_locked = True
            logger.warning(f"User {user.id} locked after {user.failed_attempts} failed logins")
        user.save(update_fields=['failed_attempts', 'is_locked'])
        raise AuthError("Invalid credentials")

    # Reset failed attempts
    if user.failed_attempts:
        user.failed_attempts = 0
        user.save(update_fields=['failed_attempts'])

    return user_auth


@api_view(['POST'])
@permission_classes([AllowAny])
def login_user(request):
    serializer = UserLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = _login(request, serializer.validated_data['phone'], serializer.validated_data['password'])

    return Response({
        "message": "Login successful",
        "user": UserSerializer(user).data,
        "tokens": get_tokens_for_user(user),
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def login_admin(request):
    serializer = AdminLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = _login(request, serializer.validated_data['email'], serializer.validated_data['password'], admin=True)

    return Response({
        "message": "Login successful",
        "admin": AdminUserSerializer(user).data,
        "tokens": get_tokens_for_user(user),
    })


# -----------------------------
# USER APIs
# -----------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def find_by_phone(request):
    serializer = FindByPhoneSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = User.objects.filter(phone=serializer.validated_data['phone']).first()
    if not user:
        raise NotFoundError("No user found with this phone number")
    if not user.is_active:
        raise AuthError("This account is disabled")

    return Response({"message": "User found", "user": UserSerializer(user).data})


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def profile(request):
    user = request.user

    if request.method == 'GET':
        return Response({"user": UserSerializer(user).data})

    serializer = ProfileUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    changes = serializer.validated_data

    new_phone = changes.get('phone')
    if new_phone and new_phone != user.phone and User.objects.filter(phone=new_phone).exists():
        raise ConflictError("An account with this phone number already exists")

    for field, value in changes.items():
        setattr(user, field, value)
    if new_phone and user.user_type == 'donor':
        user.username = new_phone
    user.save()

    return Response({"message": "Profile updated successfully", "user": UserSerializer(user).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def eligibility(request):
    """Current user's ability to donate, with days left in the cool-down"""
    user = request.user
    days_left = days_until_eligible(user)
    is_eligible = user.is_eligible and days_left == 0

    if is_eligible:
        message = "You are eligible to donate blood"
    elif days_left:
        message = f"You need to wait {days_left} more days before donating again"
    else:
        message = "Your account is not currently eligible to donate"

    return Response({
        "is_eligible": is_eligible,
        "days_to_eligibility": days_left,
        "last_donation": user.last_donation,
        "total_donations": user.total_donations,
        "message": message,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def deactivate_account(request):
    user = request.user
    user.deactivate()
    logger.info(f"Account deactivated for user {user.id}")

    return Response({
        "success": True,
        "message": "Account deactivated successfully",
        "deactivated_at": user.deactivated_at,
    })


# -----------------------------
# ADMIN USER MANAGEMENT
# -----------------------------
@api_view(['GET'])
@role_required('admin')
def admin_list_users(request):
    """
    Filters: ?search= (name/email/location), ?status=active|inactive,
    ?blood_type=, ?location=
    """
    queryset = User.objects.filter(user_type='donor')
    params = request.query_params

    search = params.get('search')
    if search:
        queryset = queryset.filter(
            Q(full_name__icontains=search) | Q(email__icontains=search) | Q(location__icontains=search)
        )

    status_filter = params.get('status')
    if status_filter in ('active', 'inactive'):
        queryset = queryset.filter(is_active=status_filter == 'active')

    blood_type = params.get('blood_type')
    if blood_type:
        queryset = queryset.filter(blood_type=BloodTypeField().to_internal_value(blood_type))

    location = params.get('location')
    if location:
        queryset = queryset.filter(location__iexact=location)

    return Response({"users": UserSerializer(queryset.order_by('-date_joined'), many=True).data})


def _get_user_or_404(user_id):
    try:
        return User.objects.get(id=user_id)
    except User.DoesNotExist:
        raise NotFoundError("User not found")


@api_view(['PUT'])
@role_required('admin')
def admin_update_user_status(request, user_id):
    serializer = UserStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    is_active = serializer.validated_data['is_active']

    user = _get_user_or_404(user_id)
    user.is_active = is_active
    if is_active:
        # Eligibility comes back unless an admin hold or the cool-down applies
        user.is_eligible = not user.eligibility_locked and not in_cooldown(user)
    else:
        user.is_eligible = False
    user.save(update_fields=['is_active', 'is_eligible'])

    logger.info(f"Admin {request.user.id} {'activated' if is_active else 'deactivated'} user {user.id}")
    return Response({
        "message": f"User {'activated' if is_active else 'deactivated'} successfully",
        "user": UserSerializer(user).data,
    })


@api_view(['PUT'])
@role_required('admin')
def admin_update_user_eligibility(request, user_id):
    """
    Administrative eligibility toggle. Turning eligibility off places a hold
    the periodic cool-down sweep respects; turning it on lifts the hold.
    """
    serializer = UserEligibilitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    is_eligible = serializer.validated_data['is_eligible']

    user = _get_user_or_404(user_id)
    user.is_eligible = is_eligible
    user.eligibility_locked = not is_eligible
    user.save(update_fields=['is_eligible', 'eligibility_locked'])

    logger.info(f"Admin {request.user.id} set eligibility of user {user.id} to {is_eligible}")
    return Response({
        "message": "Eligibility updated successfully",
        "user": UserSerializer(user).data,
    })
