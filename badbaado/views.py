import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from accounts.decorators import IsAdminAccount
from .models import SystemSetting
from .serializers import SystemSettingSerializer, SystemSettingInputSerializer

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAdminAccount])
def list_settings(request):
    """List system settings, optionally filtered by ?category="""
    queryset = SystemSetting.objects.select_related('updated_by')
    category = request.query_params.get('category')
    if category:
        queryset = queryset.filter(category=category)
    return Response({'settings': SystemSettingSerializer(queryset, many=True).data})


@api_view(['PUT'])
@permission_classes([IsAdminAccount])
def update_setting(request, key):
    """Create or update a single setting"""
    serializer = SystemSettingInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    defaults = {
        'value': serializer.validated_data['value'],
        'updated_by': request.user,
    }
    if 'description' in serializer.validated_data:
        defaults['description'] = serializer.validated_data['description']

    setting, created = SystemSetting.objects.update_or_create(key=key, defaults=defaults)
    logger.info(f"Setting {key} {'created' if created else 'updated'} by user {request.user.id}")

    return Response(
        {
            'message': 'Setting updated successfully',
            'setting': SystemSettingSerializer(setting).data,
        },
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )
