import logging
from datetime import date

from django.http import JsonResponse

logger = logging.getLogger(__name__)


def subdomain_from_host(host, base_domains):
    """
    Return the school subdomain encoded in a request host.

    The port is stripped and the host lowercased. The left-most label is
    returned when the host is a direct sub-domain of one of the base
    domains, otherwise None (bare base domains, IPs, foreign hosts).

        >>> subdomain_from_host('Colegio-Norte.example.com:8000', ['example.com'])
        'colegio-norte'
    """
    if not host:
        return None
    hostname = host.split(':')[0].lower().rstrip('.')
    for base in base_domains:
        base = base.lower().strip('.')
        suffix = f'.{base}'
        if hostname.endswith(suffix):
            label = hostname[:-len(suffix)]
            if label and '.' not in label:
                return label
    return None


def json_error(message, status=400, **extra):
    """JSON error body used by every API view."""
    payload = {'success': False, 'error': message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def form_errors_response(form, status=400):
    """Flatten a bound form's errors into a 400 JSON response."""
    errors = {
        field: [str(e) for e in field_errors]
        for field, field_errors in form.errors.items()
    }
    first = next(iter(errors.values()), ['Invalid data.'])[0]
    return json_error(first, status=status, errors=errors)


def validation_error_response(exc, status=400):
    """Turn a django ValidationError raised by a service into a JSON 400."""
    if hasattr(exc, 'message_dict'):
        errors = exc.message_dict
        first = next(iter(errors.values()), ['Invalid data.'])[0]
        return json_error(first, status=status, errors=errors)
    return json_error('; '.join(exc.messages), status=status)


def parse_date(value, default=None):
    """Parse an ISO date from a query string, falling back to default."""
    if not value:
        return default
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.warning(f"Ignoring malformed date parameter: {value!r}")
        return default
