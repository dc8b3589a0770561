"""Inbound value normalization.

Identifiers reach the API as JSON strings or numbers (Shopify ids are often
sent as numbers). The table compares them as strings, so every identifier is
passed through `normalize_identifier` once, at the gateway, before any store
call.
"""

from __future__ import annotations

from wishlist_api.exceptions import ValidationError

# Column widths in schema.sql
IDENTIFIER_MAX_LENGTH = 255
TEXT_MAX_LENGTH = 512
URL_MAX_LENGTH = 1024
URL_FIELDS = ('product_image', 'variant_image')


def _check_length(value: str, field: str, limit: int) -> str:
    if len(value) > limit:
        raise ValidationError(f'{field} must be at most {limit} characters')
    return value


def normalize_identifier(value, field: str) -> str | None:
    """Return `value` as a stripped string, or None when absent.

    Integral numbers become their decimal form (42 and 42.0 -> "42").
    """
    if value is None:
        return None
    # bool is an int subclass; True is never a meaningful id
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a string or number')
    if isinstance(value, str):
        return _check_length(value.strip(), field, IDENTIFIER_MAX_LENGTH)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f'{field} must be an integer or string')
        return str(int(value))
    raise ValidationError(f'{field} must be a string or number')


def require_identifier(value, field: str) -> str:
    normalized = normalize_identifier(value, field)
    if not normalized:
        raise ValidationError(f'Missing {field}')
    return normalized


def normalize_text(value, field: str) -> str | None:
    """Optional display metadata: stripped string, empty -> None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be a string')
    value = value.strip()
    limit = URL_MAX_LENGTH if field in URL_FIELDS else TEXT_MAX_LENGTH
    return _check_length(value, field, limit) or None


def parse_positive_int(value, field: str, default: int | None = None) -> int | None:
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a positive integer')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a positive integer') from None
    if number < 1:
        raise ValidationError(f'{field} must be a positive integer')
    return number


def pick(data: dict, *keys):
    """First present key wins; lets clients send snake_case or camelCase."""
    for key in keys:
        if key in data:
            return data[key]
    return None
