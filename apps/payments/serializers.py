from rest_framework import serializers

from .models import PaymentTransaction


class QrisChargeRequestSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()


class PaymentTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentTransaction
        fields = [
            'order', 'midtrans_order_id', 'midtrans_transaction_id', 'payment_type',
            'gross_amount', 'qr_url', 'status', 'expired_at', 'created_at', 'updated_at',
        ]


class PaymentStatusSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    order_status = serializers.CharField()
    payment_status = serializers.CharField(allow_null=True)
    qris_status = serializers.CharField(allow_null=True)
    effective_status = serializers.CharField(allow_null=True)
    qr_url = serializers.URLField(allow_null=True)
    expired_at = serializers.DateTimeField(allow_null=True)


class WebhookAckSerializer(serializers.Serializer):
    status = serializers.CharField()
