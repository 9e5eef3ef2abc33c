"""Payment lifecycle and the gateway status vocabulary.

Two records are tracked per QRIS order: the ``Payment`` row every order has,
and the gateway-specific ``PaymentTransaction``. Settlement is a sink for both;
nothing the gateway sends afterwards may move them.
"""
from dataclasses import dataclass, replace
from typing import Optional

from apps.orders.models import Order, Payment
from apps.orders.state import Actor
from fivescent.errors import IllegalPaymentDowngrade, InvalidPaymentTransition

from .models import PaymentTransaction

PaymentStatus = Payment.Status
TxStatus = PaymentTransaction.Status
OrderStatus = Order.Status

FAILED_TX_STATES = frozenset({TxStatus.EXPIRE.value, TxStatus.CANCEL.value, TxStatus.DENY.value})


@dataclass(frozen=True)
class GatewayOutcome:
    transaction_status: str
    payment_status: str
    order_target: Optional[str] = None
    recognized: bool = True

    @property
    def is_settlement(self) -> bool:
        return self.transaction_status == TxStatus.SETTLEMENT.value

    @property
    def is_failure(self) -> bool:
        return self.transaction_status in FAILED_TX_STATES


_SETTLED = GatewayOutcome(TxStatus.SETTLEMENT.value, PaymentStatus.SUCCESS.value, OrderStatus.PACKAGING.value)
_PENDING = GatewayOutcome(TxStatus.PENDING.value, PaymentStatus.PENDING.value)
_EXPIRED = GatewayOutcome(TxStatus.EXPIRE.value, PaymentStatus.FAILED.value, OrderStatus.CANCELLED.value)
_CANCELLED = GatewayOutcome(TxStatus.CANCEL.value, PaymentStatus.FAILED.value, OrderStatus.CANCELLED.value)
_DENIED = GatewayOutcome(TxStatus.DENY.value, PaymentStatus.FAILED.value, OrderStatus.CANCELLED.value)

# Exact, case-sensitive Midtrans ``transaction_status`` values.
GATEWAY_OUTCOMES = {
    'capture': _SETTLED,
    'settlement': _SETTLED,
    'pending': _PENDING,
    'expire': _EXPIRED,
    'cancel': _CANCELLED,
    'deny': _DENIED,
    'failure': _DENIED,
}


def map_gateway_status(transaction_status, fraud_status=None) -> GatewayOutcome:
    if fraud_status == 'deny':
        return _DENIED
    if transaction_status == 'capture' and fraud_status == 'challenge':
        return _PENDING
    outcome = GATEWAY_OUTCOMES.get(transaction_status)
    if outcome is None:
        return replace(_PENDING, recognized=False)
    return outcome


@dataclass(frozen=True)
class PaymentChange:
    source: str
    target: str
    changed: bool


PAYMENT_TRANSITIONS = {
    (PaymentStatus.PENDING.value, PaymentStatus.SUCCESS.value): frozenset({Actor.SYSTEM.value, Actor.ADMIN.value}),
    (PaymentStatus.PENDING.value, PaymentStatus.FAILED.value): frozenset({Actor.SYSTEM.value, Actor.ADMIN.value}),
    (PaymentStatus.SUCCESS.value, PaymentStatus.REFUNDED.value): frozenset({Actor.ADMIN.value}),
}


def plan_payment_status(current, target, actor) -> PaymentChange:
    current, target, actor = str(current), str(target), str(actor)
    if current == target:
        return PaymentChange(current, target, changed=False)
    if current == PaymentStatus.SUCCESS.value and target in (
        PaymentStatus.FAILED.value, PaymentStatus.PENDING.value,
    ):
        raise IllegalPaymentDowngrade(current, target)

    actors = PAYMENT_TRANSITIONS.get((current, target))
    if not actors or actor not in actors:
        raise InvalidPaymentTransition(current, target)
    return PaymentChange(current, target, changed=True)


def plan_transaction_status(current, target) -> bool:
    """Return True when a transaction in ``current`` should move to ``target``."""
    current, target = str(current), str(target)
    if current == target:
        return False
    # settlement is a sink and failures are final; only pending moves
    return current == TxStatus.PENDING.value
