# api/views.py
"""
Read-only statistics: public counters and the admin dashboard.
"""
from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts.decorators import role_required
from algorithms.blood_types import format_blood_type
from donors.models import Donation
from hospitals.models import BloodRequest
from hospitals.serializers import BloodRequestSerializer

User = get_user_model()


@api_view(['GET'])
@permission_classes([AllowAny])
def users_count(request):
    """Number of active donor accounts"""
    return Response({'count': User.objects.filter(user_type='donor', is_active=True).count()})


@api_view(['GET'])
@permission_classes([AllowAny])
def blood_request_stats(request):
    """Request counts per status plus a per-blood-type breakdown"""
    by_status = dict(
        BloodRequest.objects.values_list('status').annotate(total=Count('id')).order_by()
    )
    by_blood_type = {
        format_blood_type(blood_type): total
        for blood_type, total in BloodRequest.objects.values_list('blood_type').annotate(total=Count('id')).order_by()
    }

    return Response({
        'total': sum(by_status.values()),
        'pending': by_status.get(BloodRequest.PENDING, 0),
        'approved': by_status.get(BloodRequest.APPROVED, 0),
        'rejected': by_status.get(BloodRequest.REJECTED, 0),
        'completed': by_status.get(BloodRequest.COMPLETED, 0),
        'cancelled': by_status.get(BloodRequest.CANCELLED, 0),
        'by_blood_type': by_blood_type,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def pending_blood_requests(request):
    """The 10 newest requests waiting for approval"""
    queryset = (
        BloodRequest.objects
        .filter(status=BloodRequest.PENDING)
        .select_related('requester', 'approved_by')
        .annotate(donations_total=Count('donations'))
        .order_by('-created_at')[:10]
    )
    return Response({'requests': BloodRequestSerializer(queryset, many=True).data})


@api_view(['GET'])
@role_required('admin')
def dashboard_stats(request):
    """Get dashboard statistics"""
    donors = User.objects.filter(user_type='donor')
    donor_counts = donors.aggregate(
        total=Count('id'),
        active=Count('id', filter=Q(is_active=True)),
        eligible=Count('id', filter=Q(is_active=True, is_eligible=True)),
    )

    return Response({
        'total_users': donor_counts['total'],
        'active_users': donor_counts['active'],
        'eligible_donors': donor_counts['eligible'],
        'total_requests': BloodRequest.objects.count(),
        'pending_requests': BloodRequest.objects.filter(status=BloodRequest.PENDING).count(),
        'active_requests': BloodRequest.objects.filter(status=BloodRequest.APPROVED).count(),
        'completed_requests': BloodRequest.objects.filter(status=BloodRequest.COMPLETED).count(),
        'completed_donations': Donation.objects.filter(status=Donation.COMPLETED).count(),
    })
