import logging

from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import OpenApiResponse, extend_schema

from fivescent.errors import DomainError

from .models import PaymentTransaction
from .reconciliation import WebhookReconciler
from .serializers import (
    PaymentStatusSerializer,
    PaymentTransactionSerializer,
    QrisChargeRequestSerializer,
    WebhookAckSerializer,
)
from .services import create_qris_charge, payment_status_snapshot


logger = logging.getLogger(__name__)


class QrisChargeView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        request=QrisChargeRequestSerializer,
        responses={
            '200': PaymentTransactionSerializer,
            '201': PaymentTransactionSerializer,
            '400': OpenApiResponse(description='Order cannot be charged'),
            '502': OpenApiResponse(description='Payment gateway unavailable'),
        },
    )
    def post(self, request):
        serializer = QrisChargeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = None if request.user.is_storefront_admin else request.user
        try:
            payment_tx, created = create_qris_charge(serializer.validated_data['order_id'], user=user)
        except DomainError as exc:
            return Response(exc.as_response_data(), status=exc.status_code)
        return Response(
            PaymentTransactionSerializer(payment_tx).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


def _notification_payload(data):
    if hasattr(data, 'dict'):
        return data.dict()
    return dict(data)


@extend_schema(request=None, responses={'200': WebhookAckSerializer})
class MidtransWebhookView(APIView):
    """Gateway notifications. Always acknowledged so the gateway stops retrying."""

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        try:
            payload = _notification_payload(request.data)
        except Exception:
            logger.exception("Unreadable gateway notification body")
            payload = {}
        WebhookReconciler().handle(payload)
        return Response({'status': 'ok'}, status=status.HTTP_200_OK)


class PaymentStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(responses={'200': PaymentStatusSerializer})
    def get(self, request, pk):
        snapshot = payment_status_snapshot(pk, user=request.user)
        return Response(PaymentStatusSerializer(snapshot).data)


class QrisDetailView(APIView):
    """The QR code currently stored for an order, without touching the gateway."""

    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(responses={'200': PaymentTransactionSerializer, '404': OpenApiResponse(description='No QRIS charge yet')})
    def get(self, request, pk):
        queryset = PaymentTransaction.objects.select_related('order')
        if not request.user.is_storefront_admin:
            queryset = queryset.filter(order__user=request.user)
        payment_tx = get_object_or_404(queryset, order_id=pk)
        return Response(PaymentTransactionSerializer(payment_tx).data)
