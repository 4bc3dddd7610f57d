# hospitals/views.py
import logging

from django.db.models import Count
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from accounts.decorators import IsAdminAccount, role_required
from accounts.serializers import BloodTypeField, UserSerializer
from algorithms.matching import find_eligible_donors, search_donors
from badbaado.exceptions import NotFoundError
from . import lifecycle
from .models import BloodRequest, Hospital
from .serializers import (
    BloodRequestCreateSerializer,
    BloodRequestSerializer,
    DonorSearchSerializer,
    HospitalSerializer,
    RejectRequestSerializer,
)

logger = logging.getLogger(__name__)


def _requests_queryset():
    return (
        BloodRequest.objects
        .select_related('requester', 'approved_by')
        .annotate(donations_total=Count('donations'))
        .order_by('-created_at')
    )


def _get_request_or_404(request_id):
    try:
        return _requests_queryset().get(id=request_id)
    except BloodRequest.DoesNotExist:
        raise NotFoundError('Blood request not found')


# ============================================
# LIST / CREATE BLOOD REQUESTS
# ============================================
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def blood_requests(request):
    """
    GET: all requests, filtered by ?status=, ?blood_type=, ?urgency=, ?location=
    POST: create a PENDING request (admins are alerted)
    """
    if request.method == 'POST':
        serializer = BloodRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        blood_request, report = lifecycle.create_request(request.user, **serializer.validated_data)
        return Response(
            {
                "message": "Blood request created successfully",
                "request": BloodRequestSerializer(_get_request_or_404(blood_request.id)).data,
                "notifications": report,
            },
            status=status.HTTP_201_CREATED
        )

    queryset = _requests_queryset()
    params = request.query_params
    if params.get('status'):
        queryset = queryset.filter(status=params['status'].upper())
    if params.get('blood_type'):
        queryset = queryset.filter(blood_type=BloodTypeField().to_internal_value(params['blood_type']))
    if params.get('urgency'):
        queryset = queryset.filter(urgency=params['urgency'].upper())
    if params.get('location'):
        queryset = queryset.filter(location__icontains=params['location'])

    return Response({"requests": BloodRequestSerializer(queryset, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_requests(request):
    queryset = _requests_queryset().filter(requester=request.user)
    return Response({"requests": BloodRequestSerializer(queryset, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def approved_requests(request):
    """Requests currently open for donor responses"""
    queryset = _requests_queryset().filter(status=BloodRequest.APPROVED)
    return Response({"requests": BloodRequestSerializer(queryset, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_active_requests(request, user_id):
    """A requester's PENDING and APPROVED requests (self or admin)"""
    if request.user.id != user_id and not request.user.is_admin_account:
        raise PermissionDenied("Not authorized to view these requests")

    queryset = _requests_queryset().filter(
        requester_id=user_id,
        status__in=[BloodRequest.PENDING, BloodRequest.APPROVED],
    )
    return Response({"requests": BloodRequestSerializer(queryset, many=True).data})


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def blood_request_detail(request, request_id):
    if request.method == 'DELETE':
        lifecycle.delete_request(request_id, request.user)
        return Response({"message": "Blood request deleted successfully"})

    blood_request = _get_request_or_404(request_id)
    return Response({"request": BloodRequestSerializer(blood_request).data})


# ============================================
# LIFECYCLE TRANSITIONS
# ============================================
@api_view(['PUT'])
@role_required('admin')
def approve_blood_request(request, request_id):
    """
    Approve a PENDING request, then notify matched donors and the requester.
    The notification outcome is reported but never undoes the approval.
    """
    blood_request, report = lifecycle.approve_request(request_id, request.user)
    return Response({
        "message": "Blood request approved successfully",
        "request": BloodRequestSerializer(_get_request_or_404(blood_request.id)).data,
        "notifications": report,
    })


@api_view(['PUT'])
@role_required('admin')
def reject_blood_request(request, request_id):
    serializer = RejectRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    blood_request, report = lifecycle.reject_request(
        request_id, request.user, serializer.validated_data['reason']
    )
    return Response({
        "message": "Blood request rejected",
        "request": BloodRequestSerializer(_get_request_or_404(blood_request.id)).data,
        "notifications": report,
    })


@api_view(['PUT'])
@role_required('admin')
def complete_blood_request(request, request_id):
    blood_request, report = lifecycle.complete_request(request_id, request.user)
    return Response({
        "message": "Blood request marked as completed",
        "request": BloodRequestSerializer(_get_request_or_404(blood_request.id)).data,
        "notifications": report,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def cancel_blood_request(request, request_id):
    blood_request = lifecycle.cancel_request(request_id, request.user)
    return Response({
        "message": "Blood request cancelled",
        "request": BloodRequestSerializer(_get_request_or_404(blood_request.id)).data,
    })


@api_view(['GET'])
@role_required('admin')
def eligible_donors(request, request_id):
    """Every donor who currently qualifies for the request (no cap)"""
    blood_request = _get_request_or_404(request_id)
    donors = find_eligible_donors(blood_request, unlimited=True)
    return Response({
        "request_id": blood_request.id,
        "count": len(donors),
        "donors": UserSerializer(donors, many=True).data,
    })


@api_view(['GET'])
@role_required('admin')
def search_eligible_donors(request):
    """Eligible donors for ?blood_type= and ?location=, without a blood request"""
    serializer = DonorSearchSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)

    donors = search_donors(serializer.validated_data['blood_type'], serializer.validated_data['location'])
    return Response({
        "count": len(donors),
        "donors": UserSerializer(donors, many=True).data,
    })


# ============================================
# HOSPITAL REGISTRY
# ============================================
class HospitalPermission(IsAdminAccount):
    """Anyone can read the registry; only admins change it."""

    def has_permission(self, request, view):
        if request.method in ('GET', 'HEAD', 'OPTIONS'):
            return True
        return super().has_permission(request, view)


@api_view(['GET', 'POST'])
@permission_classes([HospitalPermission])
def hospitals(request):
    if request.method == 'POST':
        serializer = HospitalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        hospital = serializer.save()
        logger.info(f"Hospital {hospital.id} added by admin {request.user.id}")
        return Response(
            {"message": "Hospital created successfully", "hospital": serializer.data},
            status=status.HTTP_201_CREATED
        )

    queryset = Hospital.objects.all()
    location = request.query_params.get('location')
    if location:
        queryset = queryset.filter(location__icontains=location)
    if request.query_params.get('active') == 'true':
        queryset = queryset.filter(is_active=True)
    return Response({"hospitals": HospitalSerializer(queryset, many=True).data})


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([HospitalPermission])
def hospital_detail(request, hospital_id):
    try:
        hospital = Hospital.objects.get(id=hospital_id)
    except Hospital.DoesNotExist:
        raise NotFoundError('Hospital not found')

    if request.method == 'GET':
        return Response({"hospital": HospitalSerializer(hospital).data})

    if request.method == 'DELETE':
        hospital.delete()
        logger.info(f"Hospital {hospital_id} deleted by admin {request.user.id}")
        return Response({"message": "Hospital deleted successfully"})

    serializer = HospitalSerializer(hospital, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response({"message": "Hospital updated successfully", "hospital": serializer.data})
