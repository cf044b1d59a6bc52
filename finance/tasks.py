"""
Finance background tasks.
Runs the daily billing policies (discounts, late fees, cutoffs) for every school.
"""
import logging
from datetime import date

from celery import shared_task
from django.db import InterfaceError, OperationalError

from . import config

logger = logging.getLogger(__name__)

# Transient database errors that should trigger retry
RETRYABLE_EXCEPTIONS = (OperationalError, InterfaceError)


@shared_task(bind=True, max_retries=config.TASK_MAX_RETRIES, default_retry_delay=config.TASK_RETRY_DELAY)
def apply_tenant_billing_policies(self, tenant_schema, today=None):
    """
    Apply the billing policies of one school.

    Args:
        tenant_schema: Schema name for tenant context
        today: ISO date to run for, defaults to the current date

    Retries with exponential backoff for transient database failures.
    """
    from django_tenants.utils import schema_context
    from .services import apply_billing_policies

    run_date = date.fromisoformat(today) if today else None

    with schema_context(tenant_schema):
        try:
            result = apply_billing_policies(run_date)
        except RETRYABLE_EXCEPTIONS as e:
            logger.warning(f"Retryable error applying billing policies for {tenant_schema}: {str(e)}")
            raise self.retry(exc=e, countdown=config.TASK_RETRY_DELAY * (2 ** self.request.retries))

    logger.info(f"Billing policies applied for {tenant_schema}: {result}")
    return {'tenant': tenant_schema, **result}


@shared_task(bind=True)
def apply_billing_policies_task(self, today=None):
    """
    Daily entry point scheduled by Celery beat (see ``setup_billing_schedule``).
    Queues one policy run per active school.
    """
    from django_tenants.utils import get_public_schema_name, get_tenant_model

    School = get_tenant_model()
    schemas = list(
        School.objects.exclude(schema_name=get_public_schema_name())
        .filter(status=School.Status.ACTIVE)
        .values_list('schema_name', flat=True)
    )

    for schema in schemas:
        apply_tenant_billing_policies.delay(schema, today)

    logger.info(f"Queued billing policies for {len(schemas)} schools")
    return {'queued': len(schemas)}
