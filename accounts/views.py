import logging

from django.contrib.auth import login, logout
from core.decorators import api_login_required
from django.http import JsonResponse
from django.views.decorators.http import require_POST

from core.utils import form_errors_response
from .forms import LoginForm
from .models import can_view_all

logger = logging.getLogger(__name__)


def _user_payload(user):
    return {
        'id': user.pk,
        'email': user.email,
        'full_name': user.full_name,
        'roles': user.roles,
        'role_label': user.role_label,
        'department': user.department or None,
        'can_view_all': can_view_all(user),
    }


@require_POST
def login_view(request):
    form = LoginForm(request, data=request.POST)
    if not form.is_valid():
        logger.warning(f"Failed login for {request.POST.get('username', '')!r}")
        return form_errors_response(form)
    user = form.get_user()
    login(request, user)
    return JsonResponse({'success': True, 'user': _user_payload(user)})


@require_POST
def logout_view(request):
    logout(request)
    return JsonResponse({'success': True})


@api_login_required
def me(request):
    return JsonResponse({'user': _user_payload(request.user)})
