from django.db import transaction
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from apps.catalog.models import CartItem, Product
from apps.catalog.services import StockLedger
from apps.orders.tests.helpers import make_admin, make_customer, make_product
from fivescent.errors import InsufficientStock, StockCounterNotFound


class StockLedgerTests(TestCase):
    def setUp(self):
        self.product = make_product(stock_30ml=5, stock_50ml=2)
        self.ledger = StockLedger()

    def test_reserve_decrements_only_the_requested_size(self):
        self.ledger.reserve(self.product.pk, '30ml', 3)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_30ml, 2)
        self.assertEqual(self.product.stock_50ml, 2)

    def test_reserve_exact_stock_reaches_zero(self):
        self.ledger.reserve(self.product.pk, '50ml', 2)
        self.assertEqual(self.ledger.available(self.product.pk, '50ml'), 0)

    def test_reserve_more_than_available_changes_nothing(self):
        with self.assertRaises(InsufficientStock) as ctx:
            self.ledger.reserve(self.product.pk, '50ml', 3)

        self.assertEqual(ctx.exception.available, 2)
        self.assertEqual(ctx.exception.as_response_data()['available'], 2)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_50ml, 2)

    def test_stock_never_goes_negative_over_repeated_reservations(self):
        successes = 0
        for _ in range(8):
            try:
                self.ledger.reserve(self.product.pk, '30ml', 1)
                successes += 1
            except InsufficientStock:
                pass

        self.assertEqual(successes, 5)
        self.assertEqual(self.ledger.available(self.product.pk, '30ml'), 0)

    def test_reserve_missing_product(self):
        with self.assertRaises(StockCounterNotFound):
            self.ledger.reserve(999999, '30ml', 1)

    def test_release_increments(self):
        self.ledger.release(self.product.pk, '30ml', 4)
        self.assertEqual(self.ledger.available(self.product.pk, '30ml'), 9)

    def test_release_missing_product(self):
        with self.assertRaises(StockCounterNotFound):
            self.ledger.release(999999, '50ml', 1)

    def test_non_positive_quantity_rejected(self):
        with self.assertRaises(ValueError):
            self.ledger.reserve(self.product.pk, '30ml', 0)
        with self.assertRaises(ValueError):
            self.ledger.release(self.product.pk, '30ml', -1)

    def test_unknown_size_rejected(self):
        with self.assertRaises(ValueError):
            self.ledger.reserve(self.product.pk, '100ml', 1)

    def test_reservations_roll_back_with_the_transaction(self):
        other = make_product(name='Citrus Bloom', stock_30ml=1)
        with self.assertRaises(InsufficientStock):
            with transaction.atomic():
                self.ledger.reserve(self.product.pk, '30ml', 2)
                self.ledger.reserve(other.pk, '30ml', 5)

        self.assertEqual(self.ledger.available(self.product.pk, '30ml'), 5)
        self.assertEqual(self.ledger.available(other.pk, '30ml'), 1)


class CatalogApiTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.admin = make_admin()
        self.product = make_product()

        self.anon_client = APIClient()
        self.customer_client = APIClient()
        self.customer_client.force_authenticate(self.customer)
        self.admin_client = APIClient()
        self.admin_client.force_authenticate(self.admin)

    def test_products_are_public(self):
        response = self.anon_client.get('/api/v1/catalog/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['id'] for item in response.data], [self.product.id])

    def test_only_admins_manage_products(self):
        payload = {
            'name': 'Amber Night',
            'price_30ml': '120000.00',
            'price_50ml': '180000.00',
            'stock_30ml': 3,
            'stock_50ml': 3,
        }
        denied = self.customer_client.post('/api/v1/catalog/products/', payload, format='json')
        self.assertEqual(denied.status_code, status.HTTP_403_FORBIDDEN)

        created = self.admin_client.post('/api/v1/catalog/products/', payload, format='json')
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)
        self.assertTrue(Product.objects.filter(name='Amber Night').exists())

    def test_cart_is_scoped_to_the_user(self):
        response = self.customer_client.post(
            '/api/v1/catalog/cart/',
            {'product': self.product.id, 'size': '50ml', 'quantity': 2},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['unit_price'], '150000.00')

        other = make_customer('someone')
        CartItem.objects.create(user=other, product=self.product, size='30ml', quantity=1)

        listing = self.customer_client.get('/api/v1/catalog/cart/')
        self.assertEqual(len(listing.data), 1)
        self.assertEqual(listing.data[0]['size'], '50ml')
