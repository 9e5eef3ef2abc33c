from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

TAX_RATE = Decimal('0.05')
CENTS = Decimal('0.01')


def quantize(amount) -> Decimal:
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_totals(subtotal):
    """Return ``(subtotal, tax, total)`` with a fixed 5% tax, all rounded to cents."""
    subtotal = quantize(subtotal)
    tax = quantize(subtotal * TAX_RATE)
    return subtotal, tax, subtotal + tax


def format_order_code(order_id, created_at) -> str:
    # e.g. #ORD-10-12-2025-025
    if order_id is None:
        return "#ORD-NEW"
    if created_at is None:
        return f"#ORD-{order_id:03d}"
    if timezone.is_aware(created_at):
        created_at = timezone.localtime(created_at)
    return f"#ORD-{created_at:%d-%m-%Y}-{order_id:03d}"
