from django.contrib import admin
from django.urls import path, include

from . import views

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Apps
    path('api/', include('accounts.urls')),
    path('api/', include('hospitals.urls')),
    path('api/', include('donors.urls')),
    path('api/', include('notifications.urls')),
    path('api/', include('api.urls')),

    # System settings
    path('api/admin/settings/', views.list_settings, name='list_settings'),
    path('api/admin/settings/<str:key>/', views.update_setting, name='update_setting'),
]
