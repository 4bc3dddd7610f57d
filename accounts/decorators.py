from functools import wraps

from rest_framework.exceptions import NotAuthenticated, PermissionDenied
from rest_framework.permissions import BasePermission
from rest_framework_simplejwt.tokens import RefreshToken


def role_required(required_role):
    """
    Role-based decorator for function-based API views.
    'admin' also admits superusers.
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            user = request.user

            # Check authentication
            if not user or not user.is_authenticated:
                raise NotAuthenticated("Authentication required")

            # Check role/user_type
            if required_role == 'admin':
                allowed = user.is_admin_account
            else:
                allowed = user.user_type == required_role
            if not allowed:
                raise PermissionDenied("Access denied")

            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


class IsAdminAccount(BasePermission):
    """Authenticated admin (user_type 'admin') or superuser."""
    message = "Admin access required"

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin_account)


class IsDonorAccount(BasePermission):
    message = "Only donor accounts can do this"

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.user_type == 'donor')


def get_tokens_for_user(user):
    """
    Generate JWT tokens and embed role in payload
    """
    refresh = RefreshToken.for_user(user)
    refresh['user_type'] = user.user_type
    refresh['phone'] = user.phone
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }
