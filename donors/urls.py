# donors/urls.py
from django.urls import path

from donors import views

app_name = 'donors'

urlpatterns = [
    # Donor responses
    path('donations/', views.donations, name='donations'),
    path('donations/accepted/', views.open_donations, name='open_donations'),
    path('donations/<int:donation_id>/status/', views.update_donation_status, name='update_donation_status'),
    path('donations/<int:donation_id>/confirm/', views.confirm_donation, name='confirm_donation'),

    # Responses to a request
    path('requests/<int:request_id>/donations/', views.request_donations, name='request_donations'),

    # Donation history
    path('users/history/', views.user_history, name='user_history'),
    path('users/<int:user_id>/donations/', views.user_donations, name='user_donations'),
    path('users/<int:user_id>/last-donation/', views.user_last_donation, name='user_last_donation'),
]
