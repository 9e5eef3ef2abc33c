"""Gateway notification handling.

:class:`WebhookReconciler` turns one Midtrans notification into at most one
status change on the PaymentTransaction, the Payment and the Order, and
records a :class:`~apps.payments.models.WebhookEvent` whatever the result.
Duplicate and out-of-order deliveries are expected and absorbed here.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from django.db import transaction

from apps.orders.models import Order, Payment
from apps.orders.services import apply_transition, record_payment_status
from apps.orders.state import Actor
from fivescent.errors import DomainError, MalformedCorrelationKey

from .gateway import MidtransConfig, MidtransGateway
from .models import PaymentTransaction, WebhookEvent
from .state import map_gateway_status, plan_payment_status, plan_transaction_status


logger = logging.getLogger(__name__)

Outcome = WebhookEvent.Outcome

CORRELATION_KEY_PATTERNS = (
    re.compile(r'^ORDER-(?P<order_id>\d+)-\d+$'),
    # legacy Snap charges
    re.compile(r'^MID-\d+-(?P<order_id>\d+)$'),
    re.compile(r'^(?P<order_id>\d+)-[A-Za-z0-9]+$'),
)

FAILURE_MESSAGES = {
    PaymentTransaction.Status.EXPIRE: "Your payment for order {code} has expired.",
}


def parse_correlation_key(key) -> int:
    key = str(key or '').strip()
    for pattern in CORRELATION_KEY_PATTERNS:
        match = pattern.match(key)
        if match:
            return int(match.group('order_id'))
    raise MalformedCorrelationKey(key)


@dataclass
class ReconcileResult:
    outcome: str
    detail: str = ''
    order: Optional[Order] = None


def apply_gateway_outcome(order, payment_tx, outcome, *, payload=None, transaction_id=None) -> ReconcileResult:
    """Apply a mapped gateway status to locked ``order`` and ``payment_tx`` rows."""
    update_fields = ['updated_at']
    if payload is not None:
        payment_tx.raw_notification = payload
        update_fields.append('raw_notification')
    if transaction_id and transaction_id != payment_tx.midtrans_transaction_id:
        payment_tx.midtrans_transaction_id = transaction_id
        update_fields.append('midtrans_transaction_id')

    current = payment_tx.status
    if current == PaymentTransaction.Status.SETTLEMENT:
        payment_tx.save(update_fields=update_fields)
        logger.info("Order %s already settled; %s notification discarded", order.pk, outcome.transaction_status)
        return ReconcileResult(Outcome.DUPLICATE, 'already settled', order)

    if not outcome.recognized:
        payment_tx.save(update_fields=update_fields)
        logger.warning("Unrecognised gateway status for order %s; treated as pending", order.pk)
        return ReconcileResult(Outcome.IGNORED, 'unrecognised transaction status', order)

    if not plan_transaction_status(current, outcome.transaction_status):
        payment_tx.save(update_fields=update_fields)
        if outcome.is_settlement:
            logger.warning(
                "Settlement received for order %s after transaction became %s", order.pk, current,
            )
            return ReconcileResult(Outcome.ANOMALY, f"settlement after {current}", order)
        return ReconcileResult(Outcome.DUPLICATE, f"transaction already {current}", order)

    payment = Payment.objects.select_for_update().get(order=order)
    try:
        plan_payment_status(payment.status, outcome.payment_status, Actor.SYSTEM)
    except DomainError as exc:
        # the payment decides; the transaction stays where it is
        payment_tx.save(update_fields=update_fields)
        logger.warning(
            "Order %s payment is %s; %s notification not applied: %s",
            order.pk, payment.status, outcome.transaction_status, exc,
        )
        return ReconcileResult(Outcome.ANOMALY, str(exc), order)

    payment_tx.status = outcome.transaction_status
    update_fields.append('status')
    payment_tx.save(update_fields=update_fields)

    message = FAILURE_MESSAGES.get(outcome.transaction_status)
    record_payment_status(payment, outcome.payment_status, Actor.SYSTEM, message=message)

    anomalies = []
    if outcome.order_target and str(order.status) != outcome.order_target:
        try:
            apply_transition(order, outcome.order_target, Actor.SYSTEM)
        except DomainError as exc:
            logger.warning(
                "Order %s left in %s after %s notification: %s",
                order.pk, order.status, outcome.transaction_status, exc,
            )
            anomalies.append(str(exc))

    if anomalies:
        return ReconcileResult(Outcome.ANOMALY, '; '.join(anomalies), order)
    return ReconcileResult(Outcome.PROCESSED, f"{current} -> {outcome.transaction_status}", order)


class WebhookReconciler:
    def __init__(self, config: MidtransConfig = None, gateway: MidtransGateway = None):
        self.config = config or MidtransConfig.from_settings()
        self.gateway = gateway or MidtransGateway(self.config)

    def handle(self, payload) -> ReconcileResult:
        payload = dict(payload or {})
        try:
            result = self._handle(payload)
        except Exception as exc:
            logger.exception("Error while processing gateway notification %s", payload.get('order_id'))
            result = ReconcileResult(Outcome.ERROR, f"{type(exc).__name__}: {exc}")

        WebhookEvent.objects.create(
            gateway_order_id=str(payload.get('order_id') or '')[:128],
            transaction_status=str(payload.get('transaction_status') or '')[:32],
            order_id=result.order.pk if result.order is not None else None,
            payload=payload,
            outcome=result.outcome,
            detail=result.detail,
        )
        logger.info(
            "Gateway notification %s (%s): %s",
            payload.get('order_id'), payload.get('transaction_status'), result.outcome,
        )
        return result

    def _handle(self, payload) -> ReconcileResult:
        gateway_order_id = payload.get('order_id')
        transaction_status = payload.get('transaction_status')
        if not gateway_order_id or not transaction_status:
            logger.warning("Gateway notification without order_id or transaction_status")
            return ReconcileResult(Outcome.MALFORMED, 'missing order_id or transaction_status')

        if self.config.verify_signature and not self.gateway.verify_signature(payload):
            logger.warning("Rejected gateway notification %s: bad signature", gateway_order_id)
            return ReconcileResult(Outcome.REJECTED_SIGNATURE, 'signature mismatch')

        try:
            order_id = parse_correlation_key(gateway_order_id)
        except MalformedCorrelationKey as exc:
            logger.warning("%s", exc)
            return ReconcileResult(Outcome.MALFORMED, exc.message)

        outcome = map_gateway_status(transaction_status, payload.get('fraud_status'))

        with transaction.atomic():
            order = Order.objects.select_for_update().filter(pk=order_id).first()
            if order is None:
                logger.warning("Gateway notification %s refers to unknown order %s", gateway_order_id, order_id)
                return ReconcileResult(Outcome.ORDER_NOT_FOUND, f"order {order_id} not found")

            payment_tx = PaymentTransaction.objects.select_for_update().filter(order=order).first()
            if payment_tx is None:
                payment_tx = PaymentTransaction.objects.create(
                    order=order,
                    midtrans_order_id=gateway_order_id,
                    gross_amount=order.total_price,
                    payment_type=payload.get('payment_type') or 'qris',
                    status=PaymentTransaction.Status.PENDING,
                )
                logger.info("Created payment transaction for order %s from notification", order.pk)

            return apply_gateway_outcome(
                order,
                payment_tx,
                outcome,
                payload=payload,
                transaction_id=payload.get('transaction_id'),
            )
