from django.contrib import admin

from .models import Order, OrderLineItem, Payment, PosItem, PosTransaction


class OrderLineItemInline(admin.TabularInline):
    model = OrderLineItem
    extra = 0
    readonly_fields = ('product', 'size', 'quantity', 'unit_price', 'line_subtotal')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'status', 'payment_method', 'total_price', 'stock_released', 'created_at')
    list_filter = ('status', 'payment_method', 'created_at')
    search_fields = ('user__email', 'tracking_number', 'phone_number')
    # status changes go through the order endpoints so stock and notifications follow
    readonly_fields = ('status', 'stock_released', 'subtotal', 'tax', 'total_price')
    inlines = [OrderLineItemInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('id', 'order', 'method', 'amount', 'status', 'transaction_time')
    list_filter = ('status', 'method')
    readonly_fields = ('status', 'transaction_time')


class PosItemInline(admin.TabularInline):
    model = PosItem
    extra = 0


@admin.register(PosTransaction)
class PosTransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'customer_name', 'payment_method', 'total_price', 'admin', 'created_at')
    list_filter = ('payment_method', 'created_at')
    inlines = [PosItemInline]
