# accounts/backends.py
from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend


class PhoneOrEmailBackend(ModelBackend):
    """
    Donors sign in with their phone number, admins with their email.
    The username field still works so Django admin logins keep working.
    """

    def _find_user(self, identifier):
        User = get_user_model()
        lookups = (
            {'phone': identifier},
            {'email__iexact': identifier},
            {'username': identifier},
        )
        # Phone wins over email, email over username
        for lookup in lookups:
            user = User.objects.filter(**lookup).first()
            if user is not None:
                return user
        return None

    def authenticate(self, request, username=None, password=None, **kwargs):
        identifier = username or kwargs.get('phone') or kwargs.get('email')
        if not identifier or password is None:
            return None

        user = self._find_user(identifier)
        if user is None:
            # Hash anyway so unknown identifiers take as long as wrong passwords
            get_user_model()().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None

    def user_can_authenticate(self, user):
        """Inactive and locked accounts cannot sign in."""
        is_active = getattr(user, 'is_active', True)
        return is_active and not getattr(user, 'is_locked', False)
