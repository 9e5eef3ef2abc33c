from django.conf import settings
from django.db import models

from apps.catalog.models import Product, Size

from .utils import format_order_code


class PaymentMethod(models.TextChoices):
    QRIS = 'QRIS', 'QRIS'
    VIRTUAL_ACCOUNT = 'Virtual_Account', 'Virtual Account'
    CASH = 'Cash', 'Cash'


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = 'Pending', 'Pending'
        PACKAGING = 'Packaging', 'Packaging'
        SHIPPING = 'Shipping', 'Shipping'
        DELIVERED = 'Delivered', 'Delivered'
        CANCELLED = 'Cancelled', 'Cancelled'

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='orders')
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    tax = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    shipping_address = models.TextField(blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True, null=True)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    stock_released = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.order_code} ({self.status})"

    @property
    def order_code(self) -> str:
        return format_order_code(self.pk, self.created_at)


class OrderLineItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='order_items')
    size = models.CharField(max_length=4, choices=Size.choices)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.product_id} ({self.size}) x{self.quantity}"


class Payment(models.Model):
    class Status(models.TextChoices):
        PENDING = 'Pending', 'Pending'
        SUCCESS = 'Success', 'Success'
        FAILED = 'Failed', 'Failed'
        REFUNDED = 'Refunded', 'Refunded'

    order = models.OneToOneField(Order, on_delete=models.PROTECT, related_name='payment')
    method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    transaction_time = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Payment for order {self.order_id} ({self.status})"


class PosTransaction(models.Model):
    admin = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='pos_transactions')
    customer_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20, blank=True)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    cash_received = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    cash_change = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"POS #{self.pk} {self.customer_name}"


class PosItem(models.Model):
    transaction = models.ForeignKey(PosTransaction, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='pos_items')
    size = models.CharField(max_length=4, choices=Size.choices)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_subtotal = models.DecimalField(max_digits=12, decimal_places=2)
