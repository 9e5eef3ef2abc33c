from drf_spectacular.utils import OpenApiTypes, extend_schema_field
from rest_framework import serializers

from apps.catalog.models import Size

from .models import Order, OrderLineItem, Payment, PaymentMethod, PosItem, PosTransaction


class OrderLineItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = OrderLineItem
        fields = ['id', 'product', 'product_name', 'size', 'quantity', 'unit_price', 'line_subtotal']


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['method', 'amount', 'status', 'transaction_time']


class OrderSerializer(serializers.ModelSerializer):
    order_code = serializers.CharField(read_only=True)
    items = OrderLineItemSerializer(many=True, read_only=True)
    payment = PaymentSerializer(read_only=True)
    customer_name = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_code', 'customer_name', 'status', 'subtotal', 'tax', 'total_price',
            'shipping_address', 'phone_number', 'tracking_number', 'payment_method',
            'items', 'payment', 'created_at', 'updated_at',
        ]

    @extend_schema_field(OpenApiTypes.STR)
    def get_customer_name(self, obj):
        user = getattr(obj, 'user', None)
        if not user:
            return ''
        return user.get_full_name() or user.username


class OrderCreateSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    shipping_address = serializers.CharField(allow_blank=True, required=False, default='')
    phone_number = serializers.CharField(max_length=20, allow_blank=True, required=False, default='')
    cart_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    product_id = serializers.IntegerField(required=False)
    size = serializers.ChoiceField(choices=Size.choices, required=False)
    quantity = serializers.IntegerField(min_value=1, required=False)

    def validate(self, attrs):
        buy_now = [attrs.get(key) is not None for key in ('product_id', 'size', 'quantity')]
        if any(buy_now) and not all(buy_now):
            raise serializers.ValidationError('product_id, size and quantity are required together.')
        if not any(buy_now) and 'cart_ids' not in attrs:
            raise serializers.ValidationError('Provide cart_ids or product_id, size and quantity.')
        return attrs


class AdminOrderUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(required=False, allow_blank=True)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    payment_status = serializers.ChoiceField(choices=Payment.Status.choices, required=False)

    def validate(self, attrs):
        if not any(attrs.get(key) for key in ('status', 'tracking_number', 'payment_status')):
            raise serializers.ValidationError('Nothing to update.')
        return attrs


class PosItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    size = serializers.ChoiceField(choices=Size.choices)
    quantity = serializers.IntegerField(min_value=1)


class PosSaleCreateSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    cash_received = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    items = PosItemInputSerializer(many=True)


class PosItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = PosItem
        fields = ['product', 'product_name', 'size', 'quantity', 'unit_price', 'line_subtotal']


class PosTransactionSerializer(serializers.ModelSerializer):
    items = PosItemSerializer(many=True, read_only=True)

    class Meta:
        model = PosTransaction
        fields = [
            'id', 'customer_name', 'phone', 'payment_method', 'cash_received',
            'cash_change', 'total_price', 'items', 'created_at',
        ]
