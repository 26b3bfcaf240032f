from functools import wraps

from .api import error_response, UNAUTHORIZED, FORBIDDEN

SUPER_ADMIN = 'SUPER_ADMIN'
ADMIN = 'ADMIN'

ROLE_LABELS = {
    SUPER_ADMIN: 'Super Admin',
    ADMIN: 'Admin',
}


def user_role(user):
    if not user or not user.is_authenticated or not user.is_active:
        return None
    if user.is_superuser:
        return SUPER_ADMIN
    if user.is_staff:
        return ADMIN
    return None


def display_name(user):
    if user is None:
        return ''
    return user.get_full_name() or user.get_username()


def admin_api_required(roles=(SUPER_ADMIN, ADMIN)):
    """JSON counterpart of staff_member_required: 401 when not signed in, 403 when the role is not allowed."""
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            user = request.user
            if not user.is_authenticated or not user.is_active:
                return error_response(UNAUTHORIZED, 401, code='UNAUTHORIZED')
            if user_role(user) not in roles:
                return error_response(FORBIDDEN, 403, code='FORBIDDEN')
            return view(request, *args, **kwargs)
        return wrapper
    return decorator
