"""
Management command to schedule the daily billing-policy run.

Usage:
    python manage.py setup_billing_schedule
"""
from django.core.management.base import BaseCommand
from django_celery_beat.models import CrontabSchedule, PeriodicTask

from finance import config

TASK_NAME = 'Apply billing policies'
TASK_PATH = 'finance.tasks.apply_billing_policies_task'


class Command(BaseCommand):
    help = 'Create or update the Celery beat entry that applies billing policies every day'

    def add_arguments(self, parser):
        parser.add_argument('--hour', type=int, default=None, help='Hour of the run (UTC)')
        parser.add_argument('--minute', type=int, default=None, help='Minute of the run (UTC)')

    def handle(self, *args, **options):
        hour = options['hour'] if options['hour'] is not None else config.POLICY_RUN_HOUR
        minute = options['minute'] if options['minute'] is not None else config.POLICY_RUN_MINUTE

        schedule, _ = CrontabSchedule.objects.get_or_create(
            minute=str(minute),
            hour=str(hour),
            day_of_week='*',
            day_of_month='*',
            month_of_year='*',
            timezone='UTC',
        )
        task, created = PeriodicTask.objects.update_or_create(
            name=TASK_NAME,
            defaults={'crontab': schedule, 'task': TASK_PATH, 'enabled': True},
        )

        action = 'created' if created else 'updated'
        self.stdout.write(self.style.SUCCESS(f'  {TASK_NAME} {action}: daily at {hour:02d}:{minute:02d} UTC'))
