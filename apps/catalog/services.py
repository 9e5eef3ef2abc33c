import logging

from django.db.models import F

from fivescent.errors import InsufficientStock, StockCounterNotFound

from .models import Product


logger = logging.getLogger(__name__)


class StockLedger:
    """Per product-size stock counters.

    Every mutation is a single conditional UPDATE, so concurrent reservations on
    the same counter are serialised by the database row lock and a counter can
    never be driven below zero. Callers wanting all-or-nothing behaviour across
    several counters wrap the calls in ``transaction.atomic()``.
    """

    def reserve(self, product_id, size: str, quantity: int) -> None:
        field = self._field(size, quantity)
        updated = Product.objects.filter(
            pk=product_id, **{f"{field}__gte": quantity}
        ).update(**{field: F(field) - quantity})
        if updated:
            logger.info("Reserved %s x %s of product %s", quantity, size, product_id)
            return

        available = (
            Product.objects.filter(pk=product_id).values_list(field, flat=True).first()
        )
        if available is None:
            raise StockCounterNotFound(product_id, size)
        raise InsufficientStock(product_id, size, quantity, available)

    def release(self, product_id, size: str, quantity: int) -> None:
        field = self._field(size, quantity)
        updated = Product.objects.filter(pk=product_id).update(**{field: F(field) + quantity})
        if not updated:
            raise StockCounterNotFound(product_id, size)
        logger.info("Released %s x %s of product %s", quantity, size, product_id)

    def available(self, product_id, size: str) -> int:
        field = Product.stock_field(size)
        value = Product.objects.filter(pk=product_id).values_list(field, flat=True).first()
        if value is None:
            raise StockCounterNotFound(product_id, size)
        return value

    @staticmethod
    def _field(size, quantity):
        if quantity <= 0:
            raise ValueError(f"Stock quantity must be positive, got {quantity}")
        return Product.stock_field(size)
