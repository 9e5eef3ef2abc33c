from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from itertools import product

from django.test import SimpleTestCase
from django.utils import timezone

from apps.orders.models import Order, PaymentMethod
from apps.orders.state import (
    TERMINAL_STATES,
    TRANSITIONS,
    Actor,
    allowed_actors,
    initial_status,
    plan_transition,
)
from apps.orders.utils import compute_totals, format_order_code
from fivescent.errors import (
    InvalidTransition,
    OrderTerminal,
    TrackingNumberRequired,
    TransitionNotPermitted,
)

Status = Order.Status


class TransitionTableTests(SimpleTestCase):
    def test_every_status_actor_pair_is_decided_by_the_table(self):
        for current, target, actor in product(Status.values, Status.values, Actor.values):
            with self.subTest(current=current, target=target, actor=actor):
                edge = TRANSITIONS.get((current, target))
                allowed = current not in TERMINAL_STATES and edge is not None and actor in edge.actors
                try:
                    step = plan_transition(current, target, actor, tracking_number='JNE123')
                except InvalidTransition:
                    self.assertFalse(allowed)
                except OrderTerminal:
                    self.assertIn(current, TERMINAL_STATES)
                else:
                    self.assertTrue(allowed)
                    self.assertEqual((step.source, step.target, step.actor), (current, target, actor))
                    self.assertEqual(step.release_stock, edge.release_stock)

    def test_terminal_states_reject_everything(self):
        for current in (Status.DELIVERED, Status.CANCELLED):
            with self.assertRaises(OrderTerminal):
                plan_transition(current, Status.PACKAGING, Actor.ADMIN)

    def test_self_transition_is_invalid(self):
        with self.assertRaises(InvalidTransition):
            plan_transition(Status.PACKAGING, Status.PACKAGING, Actor.ADMIN)

    def test_customer_cannot_cancel_pending_order(self):
        with self.assertRaises(TransitionNotPermitted):
            plan_transition(Status.PENDING, Status.CANCELLED, Actor.CUSTOMER)

    def test_system_cannot_cancel_packaging_order(self):
        with self.assertRaises(TransitionNotPermitted):
            plan_transition(Status.PACKAGING, Status.CANCELLED, Actor.SYSTEM)

    def test_shipping_requires_tracking_number(self):
        with self.assertRaises(TrackingNumberRequired):
            plan_transition(Status.PACKAGING, Status.SHIPPING, Actor.ADMIN)
        with self.assertRaises(TrackingNumberRequired):
            plan_transition(Status.PACKAGING, Status.SHIPPING, Actor.ADMIN, tracking_number='   ')

        step = plan_transition(Status.PACKAGING, Status.SHIPPING, Actor.ADMIN, tracking_number='JNE123')
        self.assertFalse(step.release_stock)

    def test_cancellations_release_stock(self):
        self.assertTrue(plan_transition(Status.PENDING, Status.CANCELLED, Actor.SYSTEM).release_stock)
        self.assertTrue(plan_transition(Status.PACKAGING, Status.CANCELLED, Actor.CUSTOMER).release_stock)
        self.assertFalse(plan_transition(Status.PENDING, Status.PACKAGING, Actor.SYSTEM).release_stock)

    def test_allowed_actors(self):
        self.assertEqual(
            allowed_actors(Status.SHIPPING, Status.DELIVERED),
            frozenset({Actor.CUSTOMER.value, Actor.ADMIN.value}),
        )
        self.assertEqual(allowed_actors(Status.DELIVERED, Status.SHIPPING), frozenset())

    def test_initial_status_depends_on_payment_method(self):
        self.assertEqual(initial_status(PaymentMethod.CASH), Status.PACKAGING)
        self.assertEqual(initial_status(PaymentMethod.QRIS), Status.PENDING)
        self.assertEqual(initial_status(PaymentMethod.VIRTUAL_ACCOUNT), Status.PENDING)


class OrderUtilsTests(SimpleTestCase):
    def test_total_is_subtotal_plus_five_percent_tax(self):
        for raw in ('0', '1', '0.10', '19999.99', '123456.78', '100000'):
            with self.subTest(subtotal=raw):
                subtotal, tax, total = compute_totals(Decimal(raw))
                self.assertEqual(tax, (subtotal * Decimal('0.05')).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))
                self.assertEqual(total, subtotal + tax)

    def test_tax_rounds_half_up_to_cents(self):
        self.assertEqual(compute_totals(Decimal('0.10')), (Decimal('0.10'), Decimal('0.01'), Decimal('0.11')))

    def test_order_code_format(self):
        created_at = timezone.make_aware(datetime(2025, 12, 10, 9, 30))
        self.assertEqual(format_order_code(25, created_at), '#ORD-10-12-2025-025')
        self.assertEqual(format_order_code(1234, created_at), '#ORD-10-12-2025-1234')
