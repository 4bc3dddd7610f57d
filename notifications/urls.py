from django.urls import path

from . import views

app_name = 'notifications'

urlpatterns = [
    path('admin/notifications/', views.admin_notifications, name='admin_notifications'),
    path('notifications/', views.my_notifications, name='my_notifications'),
    path('notifications/<int:notification_id>/read/', views.mark_notification_read, name='mark_notification_read'),
]
