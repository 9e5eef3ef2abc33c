import logging
from datetime import timedelta

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from apps.orders.models import Order, Payment, PaymentMethod
from apps.orders.services import lock_order
from fivescent.errors import AlreadyPaid, ChargeNotAllowed

from .gateway import MidtransConfig, MidtransGateway
from .models import PaymentTransaction, WebhookEvent
from .reconciliation import apply_gateway_outcome
from .state import map_gateway_status


logger = logging.getLogger(__name__)

TxStatus = PaymentTransaction.Status


def _customer_details(order):
    user = order.user
    return {
        'first_name': user.first_name or user.username,
        'last_name': user.last_name,
        'email': user.email,
        'phone': order.phone_number or getattr(user, 'phone', '') or '',
    }


def create_qris_charge(order_id, *, user=None, gateway=None, now=None):
    """Return ``(transaction, created)`` for the order's QRIS charge.

    A pending charge whose QR code has not expired yet is handed back as-is;
    otherwise a new charge is requested and stored on the same row.
    """
    config = MidtransConfig.from_settings()
    gateway = gateway or MidtransGateway(config)
    now = now or timezone.now()

    with transaction.atomic():
        order = lock_order(order_id, user=user)
        existing = PaymentTransaction.objects.select_for_update().filter(order=order).first()

        if existing is not None and existing.status == TxStatus.SETTLEMENT:
            raise AlreadyPaid()
        if order.payment_method != PaymentMethod.QRIS:
            raise ChargeNotAllowed(f"Order is paid by {order.payment_method}, not QRIS.")
        if order.status != Order.Status.PENDING:
            raise ChargeNotAllowed(f"Order is {order.status}; only Pending orders can be charged.")

        if (
            existing is not None
            and existing.status == TxStatus.PENDING
            and existing.qr_url
            and existing.expired_at
            and existing.expired_at > now
        ):
            logger.info("Reusing QRIS charge %s for order %s", existing.midtrans_order_id, order.pk)
            return existing, False

        gateway_order_id = f"ORDER-{order.pk}-{int(now.timestamp())}"
        # held under the order lock so an order never gets two charges; webhooks and
        # admin updates for this order wait up to timeout_seconds behind it
        charge = gateway.charge_qris(gateway_order_id, order.total_price, _customer_details(order))
        payment_tx, _ = PaymentTransaction.objects.update_or_create(
            order=order,
            defaults={
                'midtrans_order_id': gateway_order_id,
                'midtrans_transaction_id': charge.get('transaction_id'),
                'payment_type': 'qris',
                'gross_amount': order.total_price,
                'qr_url': charge.get('qr_url'),
                'status': TxStatus.PENDING,
                'expired_at': now + timedelta(minutes=config.qris_expiry_minutes),
            },
        )
    logger.info("QRIS charge %s created for order %s", gateway_order_id, order.pk)
    return payment_tx, True


def expire_overdue_transactions(now=None) -> int:
    """Expire pending QRIS transactions past their deadline; returns how many moved."""
    now = now or timezone.now()
    order_ids = list(
        PaymentTransaction.objects.filter(
            status=TxStatus.PENDING,
            expired_at__isnull=False,
            expired_at__lte=now,
        )
        # an admin-confirmed payment outranks an unpaid QR code
        .exclude(order__payment__status=Payment.Status.SUCCESS)
        .values_list('order_id', flat=True)
    )

    expired = 0
    outcome = map_gateway_status(TxStatus.EXPIRE.value)
    for order_id in order_ids:
        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order_id)
            payment_tx = PaymentTransaction.objects.select_for_update().get(order_id=order_id)
            # a webhook may have landed since the scan
            if payment_tx.status != TxStatus.PENDING or payment_tx.expired_at > now:
                continue
            result = apply_gateway_outcome(order, payment_tx, outcome)
            if result.outcome == WebhookEvent.Outcome.PROCESSED:
                expired += 1
            else:
                logger.warning("Expiry of order %s finished as %s: %s", order_id, result.outcome, result.detail)
    if expired:
        logger.info("Expired %s overdue QRIS transactions", expired)
    return expired


def payment_status_snapshot(order_id, *, user=None, now=None) -> dict:
    """Read-only view of an order's payment progress for client polling."""
    now = now or timezone.now()
    queryset = Order.objects.select_related('payment')
    if user is not None and not user.is_storefront_admin:
        queryset = queryset.filter(user=user)
    order = get_object_or_404(queryset, pk=order_id)

    payment = getattr(order, 'payment', None)
    payment_tx = PaymentTransaction.objects.filter(order=order).first()
    qris_status = payment_tx.status if payment_tx else None
    effective_status = qris_status
    if (
        qris_status == TxStatus.PENDING
        and payment_tx.expired_at is not None
        and payment_tx.expired_at <= now
    ):
        effective_status = TxStatus.EXPIRE.value

    return {
        'order_id': order.pk,
        'order_status': order.status,
        'payment_status': payment.status if payment else None,
        'qris_status': qris_status,
        'effective_status': effective_status,
        'qr_url': payment_tx.qr_url if payment_tx else None,
        'expired_at': payment_tx.expired_at if payment_tx else None,
    }
