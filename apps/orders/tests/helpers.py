from decimal import Decimal

from django.contrib.auth import get_user_model

from apps.catalog.models import Product
from apps.orders.models import Order, OrderLineItem, Payment, PaymentMethod
from apps.orders.utils import compute_totals


def make_customer(name='customer', **extra):
    User = get_user_model()
    return User.objects.create_user(
        email=f'{name}@example.com',
        username=name,
        password='pass123',
        role=User.Role.CUSTOMER,
        **extra,
    )


def make_admin(name='admin'):
    User = get_user_model()
    return User.objects.create_user(
        email=f'{name}@example.com',
        username=name,
        password='pass123',
        role=User.Role.ADMIN,
    )


def make_product(name='Velvet Oud', stock_30ml=10, stock_50ml=10, price_30ml='100000.00', price_50ml='150000.00'):
    return Product.objects.create(
        name=name,
        category='Unisex',
        price_30ml=Decimal(price_30ml),
        price_50ml=Decimal(price_50ml),
        stock_30ml=stock_30ml,
        stock_50ml=stock_50ml,
    )


def make_order(user, product, *, size='30ml', quantity=1, status=Order.Status.PENDING,
               payment_method=PaymentMethod.QRIS, reserve=True):
    """Create an order directly, taking its stock off the product like checkout does."""
    if reserve:
        field = Product.stock_field(size)
        setattr(product, field, getattr(product, field) - quantity)
        product.save(update_fields=[field])

    unit_price = product.price_for(size)
    subtotal, tax, total = compute_totals(unit_price * quantity)
    order = Order.objects.create(
        user=user,
        status=status,
        subtotal=subtotal,
        tax=tax,
        total_price=total,
        shipping_address='Jl. Mawar No. 5, Bandung',
        phone_number='08123456789',
        payment_method=payment_method,
    )
    OrderLineItem.objects.create(
        order=order,
        product=product,
        size=size,
        quantity=quantity,
        unit_price=unit_price,
        line_subtotal=unit_price * quantity,
    )
    Payment.objects.create(order=order, method=payment_method, amount=total)
    return order
