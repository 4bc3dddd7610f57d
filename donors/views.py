# donors/views.py
import logging

from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.decorators import IsDonorAccount
from badbaado.exceptions import NotFoundError
from hospitals.models import BloodRequest
from . import utils
from .models import Donation
from .serializers import DonationCreateSerializer, DonationSerializer, DonationStatusSerializer

logger = logging.getLogger(__name__)


def _donations_queryset():
    return Donation.objects.select_related('donor', 'blood_request').order_by('-created_at')


def _check_self(request, user_id):
    if request.user.id != user_id and not request.user.is_admin_account:
        raise PermissionDenied("You can only view your own donations")


# ============================================
# DONOR RESPONSES
# ============================================
@api_view(['GET', 'POST'])
@permission_classes([IsDonorAccount])
def donations(request):
    """
    GET: the donor's own donations, optional ?status=
    POST: respond to an approved blood request
    """
    if request.method == 'POST':
        serializer = DonationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = utils.record_response(
            serializer.validated_data['blood_request_id'],
            request.user,
            notes=serializer.validated_data.get('notes', ''),
        )
        message = "Donation response recorded"
        if result['request_completed']:
            message += "; the request has all the donors it needs and is now completed"

        return Response(
            {
                "message": message,
                "donation": DonationSerializer(result['donation']).data,
                "donors_count": result['donors_count'],
                "request_completed": result['request_completed'],
                "notifications": result['notifications'],
            },
            status=status.HTTP_201_CREATED
        )

    queryset = _donations_queryset().filter(donor=request.user)
    status_filter = request.query_params.get('status')
    if status_filter:
        queryset = queryset.filter(status=status_filter.upper())
    return Response({"donations": DonationSerializer(queryset, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def open_donations(request):
    """
    Donations still in progress (PENDING or ACCEPTED). Admins see all of
    them; other users see their own and those made to their requests.
    """
    queryset = _donations_queryset().filter(status__in=Donation.OPEN_STATUSES)
    if not request.user.is_admin_account:
        queryset = queryset.filter(Q(donor=request.user) | Q(blood_request__requester=request.user))
    return Response({"donations": DonationSerializer(queryset, many=True).data})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def update_donation_status(request, donation_id):
    serializer = DonationStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    donation, report = utils.advance_status(donation_id, request.user, serializer.validated_data['status'])
    return Response({
        "message": f"Donation marked as {donation.get_status_display().lower()}",
        "donation": DonationSerializer(donation).data,
        "notifications": report,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def request_donations(request, request_id):
    """Responses to one blood request (its requester and admins)"""
    try:
        blood_request = BloodRequest.objects.get(id=request_id)
    except BloodRequest.DoesNotExist:
        raise NotFoundError('Blood request not found')

    if blood_request.requester_id != request.user.id and not request.user.is_admin_account:
        raise PermissionDenied("Not authorized to view donations for this request")

    queryset = _donations_queryset().filter(blood_request=blood_request)
    return Response({
        "request_id": blood_request.id,
        "max_donors": blood_request.max_donors,
        "donations": DonationSerializer(queryset, many=True).data,
    })


# ============================================
# DONATION HISTORY
# ============================================
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_donations(request, user_id):
    """The user's 10 most recent donations"""
    _check_self(request, user_id)
    queryset = _donations_queryset().filter(donor_id=user_id)[:10]
    return Response({"donations": DonationSerializer(queryset, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_last_donation(request, user_id):
    _check_self(request, user_id)
    donation = utils.last_completed_donation(user_id)
    return Response({
        "last_donation": donation.completed_at if donation else None,
        "donation": DonationSerializer(donation).data if donation else None,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def confirm_donation(request, donation_id):
    """Requester or admin marks a donor's donation as given"""
    donation, report = utils.confirm_donation(donation_id, request.user)
    donation = _donations_queryset().get(id=donation.id)
    return Response({
        "message": "Donation marked as completed",
        "donation": DonationSerializer(donation).data,
        "notifications": report,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_history(request):
    """The current user's requests and donations, newest first"""
    return Response({"history": utils.activity_history(request.user)})
