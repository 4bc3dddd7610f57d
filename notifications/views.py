import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.decorators import role_required
from badbaado.exceptions import NotFoundError
from .broadcasts import send_broadcast
from .models import AdminNotification, UserNotification
from .serializers import AdminNotificationSerializer, BroadcastSerializer, UserNotificationSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@role_required('admin')
def admin_notifications(request):
    """
    GET: broadcasts already sent
    POST: send a broadcast to ALL users, a BLOOD_TYPE, a LOCATION or one USER
    """
    if request.method == 'POST':
        serializer = BroadcastSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        broadcast = send_broadcast(request.user, **serializer.validated_data)
        return Response(
            {
                "message": f"Notification sent to {broadcast.recipients_count} user(s)",
                "notification": AdminNotificationSerializer(broadcast).data,
            },
            status=status.HTTP_201_CREATED
        )

    queryset = AdminNotification.objects.select_related('admin')
    return Response({"notifications": AdminNotificationSerializer(queryset, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_notifications(request):
    """The user's inbox, optional ?is_read=true|false"""
    queryset = UserNotification.objects.filter(user=request.user)
    is_read = request.query_params.get('is_read')
    if is_read in ('true', 'false'):
        queryset = queryset.filter(is_read=is_read == 'true')

    return Response({
        "notifications": UserNotificationSerializer(queryset, many=True).data,
        "unread_count": UserNotification.objects.filter(user=request.user, is_read=False).count(),
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def mark_notification_read(request, notification_id):
    try:
        notification = UserNotification.objects.get(id=notification_id, user=request.user)
    except UserNotification.DoesNotExist:
        raise NotFoundError('Notification not found')

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = timezone.now()
        notification.save(update_fields=['is_read', 'read_at'])

    return Response({
        "message": "Notification marked as read",
        "notification": UserNotificationSerializer(notification).data,
    })
