"""
Blood Type Helpers
Stored values are enum-style names (O_POSITIVE); people read them as O+.
"""

BLOOD_TYPE_CHOICES = [
    ('A_POSITIVE', 'A+'), ('A_NEGATIVE', 'A-'),
    ('B_POSITIVE', 'B+'), ('B_NEGATIVE', 'B-'),
    ('AB_POSITIVE', 'AB+'), ('AB_NEGATIVE', 'AB-'),
    ('O_POSITIVE', 'O+'), ('O_NEGATIVE', 'O-'),
]

BLOOD_TYPE_LABELS = dict(BLOOD_TYPE_CHOICES)
BLOOD_TYPE_CODES = {label: code for code, label in BLOOD_TYPE_CHOICES}


def format_blood_type(blood_type):
    """
    Human label for a stored blood type.

    Args:
        blood_type: Stored value (e.g., 'O_POSITIVE')

    Returns:
        String label (e.g., 'O+'); unknown values are returned unchanged
    """
    return BLOOD_TYPE_LABELS.get(blood_type, blood_type or '')


def parse_blood_type(value):
    """Accept either 'O_POSITIVE' or 'O+' and return the stored form, or None."""
    if not value:
        return None
    value = value.strip().upper()
    if value in BLOOD_TYPE_LABELS:
        return value
    return BLOOD_TYPE_CODES.get(value)
