"""
Configuration settings for the finance app.

These values can be overridden in Django settings by prefixing with FINANCE_.
For example, to give families more time before a billing counts as late:
    FINANCE_DEFAULT_DUE_DAYS = 45

All configuration values are lazily loaded to avoid Django setup issues.
"""


def _get_setting(name, default):
    """Get a finance setting from Django settings or use default."""
    from django.conf import settings
    return getattr(settings, f'FINANCE_{name}', default)


_DEFAULTS = {
    # Days after the start date (or creation) a billing without end date is due
    'DEFAULT_DUE_DAYS': 30,

    # Students whose worst unpaid billing is later than this are delinquent
    'DELINQUENT_AFTER_DAYS': 30,

    # Daily billing-policy run, UTC
    'POLICY_RUN_HOUR': 15,
    'POLICY_RUN_MINUTE': 28,

    # Celery retry behaviour for the policy task
    'TASK_MAX_RETRIES': 3,
    'TASK_RETRY_DELAY': 60,  # seconds
}


class _ConfigProxy:
    """
    Lazy configuration proxy that loads settings only when accessed.
    """

    def __getattr__(self, name):
        if name in _DEFAULTS:
            return _get_setting(name, _DEFAULTS[name])
        raise AttributeError(f"Unknown config setting: {name}")


_config = _ConfigProxy()


def __getattr__(name):
    """Enable module-level attribute access via the config proxy."""
    return getattr(_config, name)
