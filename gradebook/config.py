"""
Configuration settings for the gradebook app.

These values can be overridden in Django settings by prefixing with GRADEBOOK_.
For example, to change the passing average:
    GRADEBOOK_PASSING_AVERAGE = 70

All configuration values are lazily loaded to avoid Django setup issues.
"""


def _get_setting(name, default):
    """Get a gradebook setting from Django settings or use default."""
    from django.conf import settings
    return getattr(settings, f'GRADEBOOK_{name}', default)


_DEFAULTS = {
    # Active rubric weights of one class and term add up to at most this
    'MAX_TOTAL_WEIGHT': 100,

    # Default maximum score of a new rubric or assignment
    'DEFAULT_MAX_SCORE': 100,

    # Term averages at or above this count as passing in class statistics
    'PASSING_AVERAGE': 60,
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
