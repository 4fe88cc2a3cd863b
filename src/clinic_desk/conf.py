"""clinic-desk configuration.

All settings can be overridden in your Django settings.py with the
CLINIC_DESK_ prefix.

Example:
    # settings.py
    CLINIC_DESK_CURRENCY = 'SGD'
    CLINIC_DESK_WAIT_URGENT_MINUTES = 30
"""

from django.conf import settings


DEFAULTS = {
    "CLINIC_NAME": "Klinik Desa",
    "CURRENCY": "MYR",
    "QUEUE_NUMBER_PREFIX": "Q",
    "QUEUE_NUMBER_PAD": 3,
    "QUEUE_REFRESH_SECONDS": 30,
    "WAIT_WARNING_MINUTES": 20,
    "WAIT_URGENT_MINUTES": 45,
    "DEFAULT_CONSULTATION_MINUTES": 30,
    "DEFAULT_PRICE_TIERS": [
        ("Self-Pay", "Walk-in patients paying out of pocket"),
        ("Insurance", "Patients covered by an insurance provider"),
        ("Corporate", "Employees of contracted companies"),
        ("Government Panel", "Government panel patients"),
    ],
}


def get_setting(name: str, default=None):
    """Get a setting with CLINIC_DESK_ prefix, falling back to DEFAULTS."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"CLINIC_DESK_{name}", default)


def get_currency() -> str:
    """ISO code used for every amount the clinic bills."""
    return get_setting("CURRENCY")
