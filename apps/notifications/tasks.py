import logging

from celery import shared_task
from django.db import transaction

from .models import Notification


logger = logging.getLogger(__name__)


@shared_task
def create_order_notification_task(order_id: int, notif_type: str, message: str):
    from apps.orders.models import Order

    order = Order.objects.filter(pk=order_id).only('id', 'user_id').first()
    if order is None:
        logger.warning("Notification skipped because order %s no longer exists", order_id)
        return 'order_not_found'

    Notification.objects.create(
        user_id=order.user_id,
        order_id=order.pk,
        notif_type=notif_type,
        message=message,
    )
    logger.info("%s notification created for order %s", notif_type, order_id)
    return 'notification_created'


def queue_order_notification(order, notif_type: str, message: str) -> None:
    """Create the notification after the surrounding transaction commits.

    Nothing is sent if the transaction rolls back, and callers such as the
    webhook never wait on the worker.
    """
    order_id = order.pk
    transaction.on_commit(
        lambda: create_order_notification_task.delay(order_id, str(notif_type), message)
    )
