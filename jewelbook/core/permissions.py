from rest_framework.permissions import BasePermission

from .exceptions import Forbidden


def is_admin_user(user):
    """
    Check if user is an admin user.
    The local ``role`` column is authoritative; identity-provider metadata is
    only a mirror of it.
    """
    return bool(user and user.is_authenticated and getattr(user, 'role', None) == 'admin')


def require_admin(user, message='Forbidden. Admin access required.'):
    """Raise 403 unless ``user`` is an admin"""
    if not is_admin_user(user):
        raise Forbidden(message)


class IsAdminRole(BasePermission):
    """DRF permission granting access to users whose role is admin"""
    message = 'Forbidden. Admin access required.'

    def has_permission(self, request, view):
        return is_admin_user(request.user)
