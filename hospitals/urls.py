# hospitals/urls.py
from django.urls import path

from . import views

app_name = 'hospitals'

urlpatterns = [
    # Blood Requests
    path('requests/', views.blood_requests, name='blood_requests'),
    path('requests/my-requests/', views.my_requests, name='my_requests'),
    path('requests/approved/', views.approved_requests, name='approved_requests'),
    path('requests/user/<int:user_id>/active/', views.user_active_requests, name='user_active_requests'),
    path('requests/<int:request_id>/', views.blood_request_detail, name='blood_request_detail'),

    # Lifecycle
    path('requests/<int:request_id>/approve/', views.approve_blood_request, name='approve_request'),
    path('requests/<int:request_id>/reject/', views.reject_blood_request, name='reject_request'),
    path('requests/<int:request_id>/complete/', views.complete_blood_request, name='complete_request'),
    path('requests/<int:request_id>/cancel/', views.cancel_blood_request, name='cancel_request'),
    path('requests/<int:request_id>/eligible-donors/', views.eligible_donors, name='eligible_donors'),
    path('eligible-donors/', views.search_eligible_donors, name='search_eligible_donors'),

    # Hospital registry
    path('hospitals/', views.hospitals, name='hospitals'),
    path('hospitals/<int:hospital_id>/', views.hospital_detail, name='hospital_detail'),
]
