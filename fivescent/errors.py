"""Domain errors shared by the storefront apps.

Service functions raise these; views translate them into ``{"error": ...}``
responses with :meth:`DomainError.as_response_data`. The webhook path never
surfaces them to the gateway.
"""
from rest_framework import status


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Request could not be processed.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def extra(self) -> dict:
        return {}

    def as_response_data(self) -> dict:
        data = {'error': self.message}
        data.update(self.extra())
        return data


# Stock ledger

class InsufficientStock(DomainError):
    def __init__(self, product_id, size, requested, available):
        self.product_id = product_id
        self.size = size
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id} ({size}): "
            f"requested {requested}, available {available}."
        )

    def extra(self):
        return {
            'product_id': self.product_id,
            'size': self.size,
            'available': self.available,
        }


class StockCounterNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, product_id, size):
        self.product_id = product_id
        self.size = size
        super().__init__(f"Product {product_id} has no {size} stock counter.")


# Orders

class EmptyCart(DomainError):
    default_message = 'Cart is empty'


class OrderTerminal(DomainError):
    def __init__(self, current):
        self.current = current
        super().__init__(f"Order is {current} and cannot be changed.")

    def extra(self):
        return {'from': self.current}


class InvalidTransition(DomainError):
    def __init__(self, current, target, message=None):
        self.current = current
        self.target = target
        super().__init__(message or f"Order cannot be changed from {current} to {target}.")

    def extra(self):
        return {'from': self.current, 'to': self.target}


class TransitionNotPermitted(InvalidTransition):
    def __init__(self, current, target, actor):
        self.actor = actor
        super().__init__(
            current, target,
            f"{actor} may not change an order from {current} to {target}.",
        )


class TrackingNumberRequired(DomainError):
    default_message = 'A tracking number is required before an order can ship.'


class InsufficientCash(DomainError):
    def __init__(self, total, cash_received):
        self.total = total
        self.cash_received = cash_received
        super().__init__(f"Cash received {cash_received} is less than total {total}.")


# Payments

class IllegalPaymentDowngrade(DomainError):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Payment is {current}; refusing to move it back to {target}.")

    def extra(self):
        return {'from': self.current, 'to': self.target}


class InvalidPaymentTransition(DomainError):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Payment cannot be changed from {current} to {target}.")

    def extra(self):
        return {'from': self.current, 'to': self.target}


class MalformedCorrelationKey(DomainError):
    def __init__(self, key):
        self.key = key
        super().__init__(f"Unrecognised gateway order id: {key!r}")


class ChargeNotAllowed(DomainError):
    pass


class AlreadyPaid(DomainError):
    default_message = 'Order has already been paid'


class GatewayError(DomainError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = 'Payment gateway request failed.'
