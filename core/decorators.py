from functools import wraps

from accounts.models import can_view_all
from .utils import json_error


def _role_required(test, message):
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return json_error('Authentication required.', status=401)
            if not test(request.user):
                return json_error(message, status=403)
            return view_func(request, *args, **kwargs)
        return _wrapped_view
    return decorator


def is_school_admin(user):
    """Check if user is a school admin or superuser."""
    return user.is_superuser or getattr(user, 'is_school_admin', False)


def is_teacher_or_admin(user):
    return is_school_admin(user) or getattr(user, 'is_teacher', False)


api_login_required = _role_required(lambda user: True, '')

admin_required = _role_required(
    is_school_admin, "You don't have permission to perform this action."
)

teacher_or_admin_required = _role_required(
    is_teacher_or_admin, "Only teachers and administrators can perform this action."
)

view_all_required = _role_required(
    can_view_all, "You don't have permission to view these records."
)
