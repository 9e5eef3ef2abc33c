import logging

from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import OpenApiResponse, extend_schema

from apps.users.permissions import IsStorefrontAdmin
from fivescent.errors import DomainError

from . import services
from .models import Order, PosTransaction
from .serializers import (
    AdminOrderUpdateSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    PosSaleCreateSerializer,
    PosTransactionSerializer,
)


logger = logging.getLogger(__name__)

ORDER_STATUS_ALIASES = {value.upper(): value for value in Order.Status.values}


def _filter_orders_by_status(queryset, request):
    status_param = request.query_params.get('status')
    if not status_param:
        return queryset

    statuses = []
    for raw_value in status_param.split(','):
        mapped = ORDER_STATUS_ALIASES.get(raw_value.strip().upper())
        if mapped:
            statuses.append(mapped)
    if not statuses:
        return queryset
    return queryset.filter(status__in=statuses)


def _order_queryset(user):
    queryset = Order.objects.select_related('user', 'payment').prefetch_related('items__product')
    if user.is_storefront_admin:
        return queryset
    return queryset.filter(user=user)


class OrderListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(responses=OrderSerializer(many=True))
    def get(self, request):
        queryset = _filter_orders_by_status(_order_queryset(request.user), request)
        return Response(OrderSerializer(queryset, many=True).data)

    @extend_schema(
        request=OrderCreateSerializer,
        responses={
            '201': OrderSerializer,
            '400': OpenApiResponse(description='Empty cart, insufficient stock or invalid input'),
        },
    )
    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = services.create_order(request.user, **serializer.validated_data)
        except DomainError as exc:
            logger.info("Checkout rejected for user %s: %s", request.user.pk, exc)
            return Response(exc.as_response_data(), status=exc.status_code)
        order = _order_queryset(request.user).get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderDetailView(generics.RetrieveAPIView):
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return _order_queryset(self.request.user)


class _CustomerOrderActionView(APIView):
    permission_classes = [permissions.IsAuthenticated]
    order_action = None

    @extend_schema(request=None, responses={'200': OrderSerializer})
    def post(self, request, pk):
        try:
            order = self.order_action(pk, request.user)
        except DomainError as exc:
            return Response(exc.as_response_data(), status=exc.status_code)
        order = _order_queryset(request.user).get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)


class OrderCancelView(_CustomerOrderActionView):
    order_action = staticmethod(services.cancel_order)


class OrderFinishView(_CustomerOrderActionView):
    order_action = staticmethod(services.finish_order)


class AdminOrderStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsStorefrontAdmin]

    @extend_schema(request=AdminOrderUpdateSerializer, responses={'200': OrderSerializer})
    def put(self, request, pk):
        serializer = AdminOrderUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = services.admin_update_order(pk, **serializer.validated_data)
        except DomainError as exc:
            logger.warning("Admin update of order %s rejected: %s", pk, exc)
            return Response(exc.as_response_data(), status=exc.status_code)
        order = _order_queryset(request.user).get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)


class PosTransactionListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsStorefrontAdmin]

    @extend_schema(responses=PosTransactionSerializer(many=True))
    def get(self, request):
        queryset = PosTransaction.objects.prefetch_related('items__product')
        return Response(PosTransactionSerializer(queryset, many=True).data)

    @extend_schema(request=PosSaleCreateSerializer, responses={'201': PosTransactionSerializer})
    def post(self, request):
        serializer = PosSaleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            sale = services.create_pos_sale(request.user, **serializer.validated_data)
        except DomainError as exc:
            return Response(exc.as_response_data(), status=exc.status_code)
        return Response(PosTransactionSerializer(sale).data, status=status.HTTP_201_CREATED)


class PosTransactionDetailView(generics.RetrieveAPIView):
    serializer_class = PosTransactionSerializer
    permission_classes = [permissions.IsAuthenticated, IsStorefrontAdmin]
    queryset = PosTransaction.objects.prefetch_related('items__product')
