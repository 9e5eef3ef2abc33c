import logging

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from apps.catalog.models import CartItem, Product
from apps.catalog.services import StockLedger
from apps.notifications.models import Notification
from apps.notifications.tasks import queue_order_notification
from apps.payments.state import plan_payment_status
from fivescent.errors import EmptyCart, InsufficientCash, InvalidTransition

from .models import Order, OrderLineItem, Payment, PaymentMethod, PosItem, PosTransaction
from .state import Actor, initial_status, plan_transition
from .utils import compute_totals, quantize


logger = logging.getLogger(__name__)

Status = Order.Status

STATUS_ALIASES = {
    'Cancel': Status.CANCELLED,
}

STATUS_MESSAGES = {
    Status.PACKAGING: "Your order {code} is being carefully packaged.",
    Status.SHIPPING: "Your order {code} has been shipped. Track your package for delivery updates.",
    Status.DELIVERED: "Your order {code} has been delivered.",
    Status.CANCELLED: "Your order {code} has been cancelled.",
}

PAYMENT_MESSAGES = {
    Payment.Status.SUCCESS: (
        Notification.Type.PAYMENT,
        "Your payment for order {code} was successful. Thank you for your purchase.",
    ),
    Payment.Status.FAILED: (
        Notification.Type.PAYMENT,
        "Your payment for order {code} failed. Please try again or use another payment method.",
    ),
    Payment.Status.REFUNDED: (
        Notification.Type.REFUND,
        "Your refund for order {code} has been processed.",
    ),
}


def normalize_status(value) -> str:
    value = str(value or '').strip()
    return str(STATUS_ALIASES.get(value, value))


def _line_items_from_cart(user, cart_ids):
    cart_items = list(
        CartItem.objects.select_related('product')
        .filter(user=user, id__in=cart_ids or [])
        .order_by('id')
    )
    if not cart_items:
        raise EmptyCart()
    return cart_items, [(item.product, item.size, item.quantity) for item in cart_items]


def _merge_lines(lines):
    """Collapse repeated product/size lines and sort them by product id, then size.

    Stock rows are always locked in this order, so concurrent checkouts that
    share products queue behind each other instead of deadlocking.
    """
    merged = {}
    for product, size, quantity in lines:
        key = (product.pk, size)
        if key in merged:
            quantity += merged[key][2]
        merged[key] = (product, size, quantity)
    return [merged[key] for key in sorted(merged)]


@transaction.atomic
def create_order(
    user,
    *,
    payment_method,
    shipping_address='',
    phone_number='',
    cart_ids=None,
    product_id=None,
    size=None,
    quantity=None,
) -> Order:
    """Create an order, its line items and its payment, reserving stock.

    Either ``cart_ids`` (cart checkout) or ``product_id``/``size``/``quantity``
    (buy now) must be given. Any stock shortfall aborts the whole transaction.
    """
    cart_items = []
    if product_id is not None:
        product = get_object_or_404(Product, pk=product_id)
        lines = [(product, size, quantity)]
    else:
        cart_items, lines = _line_items_from_cart(user, cart_ids)

    ledger = StockLedger()
    priced = []
    for product, line_size, line_quantity in _merge_lines(lines):
        ledger.reserve(product.pk, line_size, line_quantity)
        unit_price = product.price_for(line_size)
        priced.append((product, line_size, line_quantity, unit_price, quantize(unit_price * line_quantity)))

    subtotal, tax, total = compute_totals(sum(line[4] for line in priced))
    order = Order.objects.create(
        user=user,
        status=initial_status(payment_method),
        subtotal=subtotal,
        tax=tax,
        total_price=total,
        shipping_address=shipping_address,
        phone_number=phone_number,
        payment_method=payment_method,
    )
    OrderLineItem.objects.bulk_create([
        OrderLineItem(
            order=order,
            product=product,
            size=line_size,
            quantity=line_quantity,
            unit_price=unit_price,
            line_subtotal=line_subtotal,
        )
        for product, line_size, line_quantity, unit_price, line_subtotal in priced
    ])
    Payment.objects.create(
        order=order,
        method=payment_method,
        amount=total,
        status=Payment.Status.PENDING,
    )
    if cart_items:
        CartItem.objects.filter(id__in=[item.id for item in cart_items]).delete()

    logger.info(
        "Order %s created for user %s: %s items, total %s, status %s",
        order.pk, user.pk, len(priced), total, order.status,
    )
    queue_order_notification(
        order,
        Notification.Type.PAYMENT,
        f"Your payment for order {order.order_code} is pending and is being processed.",
    )
    return order


def release_order_stock(order) -> bool:
    """Return every line item's stock to the shelf, at most once per order.

    The caller must hold a row lock on ``order`` inside a transaction.
    """
    if order.stock_released:
        logger.info("Stock for order %s already released; skipping", order.pk)
        return False

    ledger = StockLedger()
    for item in order.items.all():
        ledger.release(item.product_id, item.size, item.quantity)
    order.stock_released = True
    order.save(update_fields=['stock_released', 'updated_at'])
    logger.info("Stock released for order %s", order.pk)
    return True


def apply_transition(order, target, actor, tracking_number=None):
    """Validate and apply one state-machine edge to a locked order."""
    tracking_number = (tracking_number or '').strip() or order.tracking_number
    step = plan_transition(order.status, normalize_status(target), actor, tracking_number)

    if step.release_stock:
        release_order_stock(order)

    order.status = step.target
    update_fields = ['status', 'updated_at']
    if step.target == Status.SHIPPING and tracking_number != order.tracking_number:
        order.tracking_number = tracking_number
        update_fields.append('tracking_number')
    order.save(update_fields=update_fields)

    logger.info(
        "Order %s moved %s -> %s by %s", order.pk, step.source, step.target, step.actor,
    )
    _notify_status_change(order, step.target)
    return step


def _notify_status_change(order, status):
    template = STATUS_MESSAGES.get(status)
    if template is None:
        return
    code = order.order_code
    queue_order_notification(order, Notification.Type.ORDER_UPDATE, template.format(code=code))
    if status == Status.DELIVERED:
        queue_order_notification(
            order,
            Notification.Type.DELIVERY,
            f"Great news! Your order {code} has been delivered. We'd love to hear your thoughts.",
        )


def lock_order(order_id, user=None) -> Order:
    queryset = Order.objects.select_for_update()
    if user is not None:
        queryset = queryset.filter(user=user)
    return get_object_or_404(queryset, pk=order_id)


def transition_order(order_id, target, actor, *, user=None, tracking_number=None) -> Order:
    """Move an order under a row lock, re-validating against the fresh state."""
    with transaction.atomic():
        order = lock_order(order_id, user=user)
        apply_transition(order, target, actor, tracking_number=tracking_number)
    return order


def cancel_order(order_id, user) -> Order:
    return transition_order(order_id, Status.CANCELLED, Actor.CUSTOMER, user=user)


def finish_order(order_id, user) -> Order:
    return transition_order(order_id, Status.DELIVERED, Actor.CUSTOMER, user=user)


def record_payment_status(payment, target, actor, message=None) -> bool:
    """Apply a Payment status change through the payment state machine.

    Returns False when the payment already had that status. ``message``
    replaces the default customer notification text.
    """
    change = plan_payment_status(payment.status, target, actor)
    if not change.changed:
        return False

    payment.status = change.target
    update_fields = ['status', 'updated_at']
    if change.target == Payment.Status.SUCCESS:
        payment.transaction_time = timezone.now()
        update_fields.append('transaction_time')
    payment.save(update_fields=update_fields)
    logger.info(
        "Payment for order %s moved %s -> %s by %s",
        payment.order_id, change.source, change.target, actor,
    )

    default = PAYMENT_MESSAGES.get(change.target)
    if default:
        notif_type, template = default
        template = message or template
        queue_order_notification(payment.order, notif_type, template.format(code=payment.order.order_code))
    return True


def admin_update_order(order_id, *, status=None, tracking_number=None, payment_status=None) -> Order:
    with transaction.atomic():
        order = lock_order(order_id)
        tracking_number = (tracking_number or '').strip() or None

        if status:
            apply_transition(order, status, Actor.ADMIN, tracking_number=tracking_number)
        elif tracking_number:
            if order.status not in (Status.PACKAGING, Status.SHIPPING):
                raise InvalidTransition(
                    order.status, order.status,
                    f"Tracking number can only be set while an order is Packaging or Shipping, not {order.status}.",
                )
            order.tracking_number = tracking_number
            order.save(update_fields=['tracking_number', 'updated_at'])

        if payment_status:
            payment = Payment.objects.select_for_update().get(order=order)
            record_payment_status(payment, payment_status, Actor.ADMIN)
    return order


@transaction.atomic
def create_pos_sale(admin, *, customer_name, payment_method, items, phone='', cash_received=None) -> PosTransaction:
    """Record an in-store sale, reserving stock for every item or none."""
    if not items:
        raise EmptyCart('A POS sale needs at least one item.')

    lines = [
        (get_object_or_404(Product, pk=item['product_id']), item['size'], item['quantity'])
        for item in items
    ]

    ledger = StockLedger()
    priced = []
    for product, line_size, line_quantity in _merge_lines(lines):
        ledger.reserve(product.pk, line_size, line_quantity)
        unit_price = product.price_for(line_size)
        priced.append((product, line_size, line_quantity, unit_price, quantize(unit_price * line_quantity)))

    total = quantize(sum(line[4] for line in priced))
    cash_change = 0
    if payment_method == PaymentMethod.CASH:
        if cash_received is None or quantize(cash_received) < total:
            raise InsufficientCash(total, cash_received)
        cash_change = quantize(cash_received) - total
    else:
        cash_received = None

    pos_transaction = PosTransaction.objects.create(
        admin=admin,
        customer_name=customer_name,
        phone=phone,
        payment_method=payment_method,
        cash_received=cash_received,
        cash_change=cash_change,
        total_price=total,
    )
    PosItem.objects.bulk_create([
        PosItem(
            transaction=pos_transaction,
            product=product,
            size=line_size,
            quantity=line_quantity,
            unit_price=unit_price,
            line_subtotal=line_subtotal,
        )
        for product, line_size, line_quantity, unit_price, line_subtotal in priced
    ])
    logger.info("POS sale %s recorded by %s: total %s", pos_transaction.pk, admin.pk, total)
    return pos_transaction
