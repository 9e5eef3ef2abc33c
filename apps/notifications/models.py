from django.conf import settings
from django.db import models


class Notification(models.Model):
    class Type(models.TextChoices):
        PAYMENT = 'Payment', 'Payment'
        ORDER_UPDATE = 'OrderUpdate', 'Order update'
        DELIVERY = 'Delivery', 'Delivery'
        REFUND = 'Refund', 'Refund'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications',
    )
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications',
    )
    notif_type = models.CharField(max_length=16, choices=Type.choices)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.notif_type} -> {self.user}"
