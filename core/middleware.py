import logging

from django.conf import settings
from django.db import connection
from django_tenants.middleware.main import TenantMainMiddleware
from django_tenants.utils import get_public_schema_name, get_tenant_domain_model, get_tenant_model

from .utils import json_error, subdomain_from_host

logger = logging.getLogger(__name__)


class TenantNotFoundMiddleware(TenantMainMiddleware):
    """
    Resolve the school from the request host.

    Each school must be accessed via its own subdomain. Unknown hosts,
    inactive schools and the bare platform domain (unless a public landing
    is enabled) get a JSON 404 instead of falling through to the public site.
    """

    # Paths that work without a school (health checks, static files, platform admin)
    PUBLIC_PATHS = ('/health/', '/health', '/static/', '/favicon.ico', '/admin/')

    @property
    def show_public_landing(self):
        return getattr(settings, 'SHOW_PUBLIC_LANDING', False)

    @property
    def public_domains(self):
        return getattr(settings, 'PUBLIC_DOMAINS', ['localhost', '127.0.0.1'])

    def is_public_domain(self, hostname):
        hostname = hostname.split(':')[0].lower()
        return hostname in [d.lower() for d in self.public_domains]

    def find_tenant(self, hostname):
        """Domain table first, then the school's subdomain under a base domain."""
        domain_model = get_tenant_domain_model()
        try:
            return self.get_tenant(domain_model, hostname)
        except domain_model.DoesNotExist:
            pass
        subdomain = subdomain_from_host(hostname, getattr(settings, 'BASE_DOMAINS', []))
        if subdomain is None:
            return None
        return get_tenant_model().objects.filter(subdomain=subdomain).first()

    def no_tenant_found(self, request, hostname):
        if any(request.path.startswith(path) for path in self.PUBLIC_PATHS):
            # Fall back to public schema for these paths
            tenant = get_tenant_model().objects.filter(schema_name=get_public_schema_name()).first()
            if tenant:
                request.tenant = tenant
                connection.set_tenant(tenant)
                self.setup_url_routing(request, force_public=True)
                return None

        logger.info(f"School not found for host {hostname}")
        return json_error('School not found.', status=404, hostname=hostname)

    def process_request(self, request):
        connection.set_schema_to_public()
        hostname = self.hostname_from_request(request)

        tenant = self.find_tenant(hostname)
        if tenant is None:
            return self.no_tenant_found(request, hostname)

        if tenant.schema_name == get_public_schema_name():
            if not (self.show_public_landing and self.is_public_domain(hostname)):
                return self.no_tenant_found(request, hostname)
        elif not tenant.is_active:
            logger.warning(f"Request for inactive school {tenant.schema_name} from {hostname}")
            return json_error('School not found.', status=404, hostname=hostname)

        tenant.domain_url = hostname
        request.tenant = tenant
        connection.set_tenant(tenant)
        self.setup_url_routing(request)
