from django.contrib import admin

from .models import PaymentTransaction, WebhookEvent


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'order', 'midtrans_order_id', 'status', 'gross_amount', 'expired_at', 'updated_at')
    list_filter = ('status', 'payment_type')
    search_fields = ('midtrans_order_id', 'midtrans_transaction_id')


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'gateway_order_id', 'transaction_status', 'outcome', 'order', 'received_at')
    list_filter = ('outcome', 'transaction_status', 'received_at')
    search_fields = ('gateway_order_id', 'detail')
    readonly_fields = ('gateway_order_id', 'transaction_status', 'order', 'payload', 'outcome', 'detail', 'received_at')
