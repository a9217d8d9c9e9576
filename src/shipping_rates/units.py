from decimal import Decimal, InvalidOperation

GRAMS_PER_UNIT = {
    "g": Decimal("1"),
    "kg": Decimal("1000"),
    "lb": Decimal("453.59237"),
    "oz": Decimal("28.349523125"),
}


def to_decimal(v) -> Decimal | None:
    """Convert a number or numeric string to Decimal, or None if it is not one."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, Decimal):
        return v
    try:
        return Decimal(str(v).strip())
    except (InvalidOperation, ValueError):
        return None


def to_grams(value, unit: str = "g") -> Decimal | None:
    unit = (unit or "g").strip().lower()
    if unit not in GRAMS_PER_UNIT:
        raise ValueError(f"Unknown weight unit '{unit}', must be one of: {sorted(GRAMS_PER_UNIT)}")
    amount = to_decimal(value)
    if amount is None:
        return None
    if not amount.is_finite():
        return amount
    return amount * GRAMS_PER_UNIT[unit]
