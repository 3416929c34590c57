"""
Parsing rules for the money fields of an investment

amount:            trimmed; blank -> 0; anything non-numeric is rejected
expected/actual:   blank -> None ("not known yet", distinct from zero)
"""

import math
from typing import Optional, Union
from errors import ValidationError

Number = Union[int, float, str, None]


def _to_float(value: Number, message: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(message)
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationError(message)
    if not math.isfinite(number):
        raise ValidationError(message)
    return number


def _is_blank(value: Number) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value: Number) -> float:
    if _is_blank(value):
        return 0.0
    return _to_float(value, "Amount must be a number")


def require_amount(value: Number) -> float:
    """Amount on creation: must be present and numeric"""
    if _is_blank(value):
        raise ValidationError("Amount is required")
    return parse_amount(value)


def parse_optional_return(value: Number, field: str) -> Optional[float]:
    if _is_blank(value):
        return None
    return _to_float(value, f"{field} must be a number")
