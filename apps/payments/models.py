from django.db import models

from apps.orders.models import Order


class PaymentTransaction(models.Model):
    """Gateway-side record of a QRIS charge; one per order, updated in place."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        SETTLEMENT = 'settlement', 'Settlement'
        EXPIRE = 'expire', 'Expired'
        CANCEL = 'cancel', 'Cancelled'
        DENY = 'deny', 'Denied'

    order = models.OneToOneField(Order, on_delete=models.PROTECT, related_name='payment_transaction')
    midtrans_order_id = models.CharField(max_length=64, db_index=True)
    midtrans_transaction_id = models.CharField(max_length=128, blank=True, null=True)
    payment_type = models.CharField(max_length=32, default='qris')
    gross_amount = models.DecimalField(max_digits=12, decimal_places=2)
    qr_url = models.URLField(max_length=500, blank=True, null=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)
    expired_at = models.DateTimeField(blank=True, null=True)
    raw_notification = models.JSONField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.midtrans_order_id} ({self.status})"


class WebhookEvent(models.Model):
    """Audit trail of every gateway notification, whatever happened to it."""

    class Outcome(models.TextChoices):
        PROCESSED = 'processed', 'Processed'
        DUPLICATE = 'duplicate', 'Duplicate / already final'
        IGNORED = 'ignored', 'Ignored'
        ORDER_NOT_FOUND = 'order_not_found', 'Order not found'
        MALFORMED = 'malformed', 'Malformed'
        ANOMALY = 'anomaly', 'Anomaly'
        REJECTED_SIGNATURE = 'rejected_signature', 'Rejected signature'
        ERROR = 'error', 'Error'

    gateway_order_id = models.CharField(max_length=128, blank=True, db_index=True)
    transaction_status = models.CharField(max_length=32, blank=True)
    order = models.ForeignKey(
        Order, on_delete=models.SET_NULL, null=True, blank=True, related_name='webhook_events',
    )
    payload = models.JSONField(default=dict, blank=True)
    outcome = models.CharField(max_length=24, choices=Outcome.choices)
    detail = models.TextField(blank=True)
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-received_at']

    def __str__(self):
        return f"{self.gateway_order_id} {self.transaction_status} -> {self.outcome}"
