"""
Shared validators for menu content input.
"""

import re

from shared.config.constants import Limits
from shared.utils.exceptions import ValidationError

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
# BCP-47 subset used by menu translations: "en", "en-US", "fr-FR", "ar-DZ"
_LOCALE_RE = re.compile(r"^[a-z]{2,3}(-[A-Z]{2})?$")


def validate_currency_code(currency: str) -> str:
    """
    Validate an ISO-4217 shaped currency code.

    Args:
        currency: Code such as "EUR" or "dzd" (normalized to upper case).

    Returns:
        The normalized code.

    Raises:
        ValidationError: If the code is not three letters.
    """
    normalized = (currency or "").strip().upper()
    if len(normalized) != Limits.CURRENCY_CODE_LENGTH or not _CURRENCY_RE.match(normalized):
        raise ValidationError(f"Invalid currency code '{currency}'", field="currency")
    return normalized


def validate_amount_minor(amount_minor: int) -> int:
    """
    Validate a price expressed in minor units (cents).

    Floats are rejected outright so that no rounding can sneak in.
    """
    if isinstance(amount_minor, bool) or not isinstance(amount_minor, int):
        raise ValidationError("Price must be an integer amount in minor units", field="amount_minor")
    if amount_minor < 0:
        raise ValidationError("Price cannot be negative", field="amount_minor", value=amount_minor)
    return amount_minor


def validate_locale(locale: str) -> str:
    """Validate a translation locale tag like "en-US"."""
    if not locale or not _LOCALE_RE.match(locale):
        raise ValidationError(f"Invalid locale '{locale}'", field="locale")
    return locale
