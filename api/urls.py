# api/urls.py
from django.urls import path

from . import views

app_name = 'api'

urlpatterns = [
    path('users/count/', views.users_count, name='users-count'),
    path('blood-requests/stats/', views.blood_request_stats, name='blood-request-stats'),
    path('blood-requests/pending/', views.pending_blood_requests, name='pending-blood-requests'),
    path('admin/dashboard/', views.dashboard_stats, name='dashboard-stats'),
]
