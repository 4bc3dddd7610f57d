from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from . import views

app_name = 'accounts'

urlpatterns = [
    # ========================================
    # AUTHENTICATION
    # ========================================
    path('auth/register/user/', views.register_user, name='register_user'),
    path('auth/register/admin/', views.register_admin, name='register_admin'),
    path('auth/login/user/', views.login_user, name='login_user'),
    path('auth/login/admin/', views.login_admin, name='login_admin'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # ========================================
    # USER SELF-SERVICE
    # ========================================
    path('users/find-by-phone/', views.find_by_phone, name='find_by_phone'),
    path('users/profile/', views.profile, name='profile'),
    path('users/eligibility/', views.eligibility, name='eligibility'),
    path('users/deactivate-account/', views.deactivate_account, name='deactivate_account'),

    # ========================================
    # ADMIN USER MANAGEMENT
    # ========================================
    path('admin/users/', views.admin_list_users, name='admin_users'),
    path('admin/users/<int:user_id>/status/', views.admin_update_user_status, name='admin_user_status'),
    path('admin/users/<int:user_id>/eligibility/', views.admin_update_user_eligibility, name='admin_user_eligibility'),
]
