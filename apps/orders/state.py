"""Order lifecycle.

The whole transition table lives in :data:`TRANSITIONS`; nothing else in the
code base decides whether an order may move. :func:`plan_transition` is pure:
it validates a request against the table and returns a :class:`Transition`
describing what the caller has to do, without touching the database.
"""
from dataclasses import dataclass

from django.db import models

from fivescent.errors import (
    InvalidTransition,
    OrderTerminal,
    TrackingNumberRequired,
    TransitionNotPermitted,
)

from .models import Order, PaymentMethod

Status = Order.Status


class Actor(models.TextChoices):
    CUSTOMER = 'CUSTOMER', 'Customer'
    ADMIN = 'ADMIN', 'Admin'
    SYSTEM = 'SYSTEM', 'Payment reconciliation'


TERMINAL_STATES = frozenset({Status.DELIVERED.value, Status.CANCELLED.value})


@dataclass(frozen=True)
class Edge:
    actors: frozenset
    release_stock: bool = False
    requires_tracking_number: bool = False


def _actors(*actors):
    return frozenset(actor.value for actor in actors)


TRANSITIONS = {
    (Status.PENDING.value, Status.PACKAGING.value): Edge(_actors(Actor.ADMIN, Actor.SYSTEM)),
    (Status.PENDING.value, Status.CANCELLED.value): Edge(
        _actors(Actor.ADMIN, Actor.SYSTEM), release_stock=True,
    ),
    (Status.PACKAGING.value, Status.CANCELLED.value): Edge(
        _actors(Actor.CUSTOMER, Actor.ADMIN), release_stock=True,
    ),
    (Status.PACKAGING.value, Status.SHIPPING.value): Edge(
        _actors(Actor.ADMIN), requires_tracking_number=True,
    ),
    (Status.SHIPPING.value, Status.DELIVERED.value): Edge(_actors(Actor.CUSTOMER, Actor.ADMIN)),
}


@dataclass(frozen=True)
class Transition:
    source: str
    target: str
    actor: str
    release_stock: bool = False


def initial_status(payment_method) -> str:
    # Cash orders are paid on delivery and go straight to fulfilment.
    if str(payment_method) == PaymentMethod.CASH.value:
        return Status.PACKAGING.value
    return Status.PENDING.value


def is_terminal(status) -> bool:
    return str(status) in TERMINAL_STATES


def allowed_actors(current, target) -> frozenset:
    edge = TRANSITIONS.get((str(current), str(target)))
    return edge.actors if edge else frozenset()


def plan_transition(current, target, actor, tracking_number=None) -> Transition:
    current, target, actor = str(current), str(target), str(actor)
    if current in TERMINAL_STATES:
        raise OrderTerminal(current)

    edge = TRANSITIONS.get((current, target))
    if edge is None:
        raise InvalidTransition(current, target)
    if actor not in edge.actors:
        raise TransitionNotPermitted(current, target, actor)
    if edge.requires_tracking_number and not (tracking_number or '').strip():
        raise TrackingNumberRequired()

    return Transition(
        source=current,
        target=target,
        actor=actor,
        release_stock=edge.release_stock,
    )
