"""Helpers for integer minor-unit (cents) amounts."""


def format_cents(amount_cents: int) -> str:
    """Render cents as a two-decimal major-unit string, e.g. 10050 -> '100.50'."""
    sign = "-" if amount_cents < 0 else ""
    whole, cents = divmod(abs(int(amount_cents)), 100)
    return f"{sign}{whole}.{cents:02d}"


def sum_cents(amounts) -> int:
    return sum((int(a or 0) for a in amounts), 0)
