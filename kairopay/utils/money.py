from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_usd(value) -> float:
    """Present a USD amount rounded to cents."""
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def as_number(value):
    """JSON-friendly number for an unrounded stored amount."""
    if value is None:
        return None
    return float(value) if isinstance(value, Decimal) else value
