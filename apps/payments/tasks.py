import logging

from celery import shared_task

from .services import expire_overdue_transactions


logger = logging.getLogger(__name__)


@shared_task
def expire_qris_transactions_task():
    expired = expire_overdue_transactions()
    logger.info("QRIS expiry sweep finished, %s transactions expired", expired)
    return expired
